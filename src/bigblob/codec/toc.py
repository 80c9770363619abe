"""TOC parsing.

Records are variable length (the name trails the fixed 52 bytes), so the TOC
can only be walked in order; there is no random access by index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ..logging import get_logger
from .constants import (
    DATA_REGION_START,
    ENTRY_COUNT_SIZE,
    ENTRY_RECORD_SIZE,
    TOC_OFFSET_SIZE,
)
from .cursor import ByteCursor
from .errors import (
    ArchiveWarning,
    E_MALFORMED_TOC,
    MalformedToc,
    OutOfBounds,
    W_SUSPICIOUS_ENTRY,
    W_TRAILING_DATA,
    entry_context,
)
from .models import Archive, CanvasGeometry, Entry, FileType

__all__ = ["Toc", "parse_toc", "read_geometry", "read_entry", "load_archive"]


@dataclass(frozen=True, slots=True)
class Toc:
    toc_offset: int
    entries: Tuple[Entry, ...]
    warnings: Tuple[ArchiveWarning, ...] = ()


def read_geometry(cur: ByteCursor) -> CanvasGeometry:
    canvas_size = cur.read_u32_pair()
    canvas_offset = cur.read_u32_pair()
    crop_size = cur.read_u32_pair()
    width = cur.read_u32()
    height = cur.read_u32()
    return CanvasGeometry(canvas_size, canvas_offset, crop_size, width, height)


def read_entry(cur: ByteCursor, index: int) -> Entry:
    record_start = cur.position
    if cur.remaining < ENTRY_RECORD_SIZE:
        raise MalformedToc(
            E_MALFORMED_TOC,
            f"TOC record {index} truncated: {cur.remaining} bytes left, "
            f"{ENTRY_RECORD_SIZE} needed",
            {"index": index, "position": record_start},
        )
    raw_type = cur.read_u32()
    size_decompressed = cur.read_u32()
    size = cur.read_u32()
    geometry = read_geometry(cur)
    offset = cur.read_u32()
    name_len = cur.read_u32()
    if name_len > cur.remaining:
        raise MalformedToc(
            E_MALFORMED_TOC,
            f"Name of TOC record {index} claims {name_len} bytes, "
            f"only {cur.remaining} remain",
            {"index": index, "name_len": name_len, "position": record_start},
        )
    raw_name = cur.read_bytes(name_len, "entry name")
    try:
        file_type = FileType(raw_type)
    except ValueError:
        raise MalformedToc(
            E_MALFORMED_TOC,
            f"Unknown file_type {raw_type} in TOC record {index}",
            entry_context(
                index,
                raw_name.decode("utf-8", errors="replace"),
                file_type=raw_type,
            ),
        ) from None
    return Entry(
        index=index,
        file_type=file_type,
        size_decompressed=size_decompressed,
        size=size,
        offset=offset,
        raw_name=raw_name,
        geometry=geometry,
    )


def _check_entry(entry: Entry) -> List[ArchiveWarning]:
    if entry.file_type is FileType.SOUND and not entry.geometry.is_zero():
        return [
            ArchiveWarning(
                W_SUSPICIOUS_ENTRY,
                f"Sound entry '{entry.name}' has non-zero geometry "
                f"{entry.geometry.to_dict()}",
                entry_context(entry.index, entry.name),
            )
        ]
    return []


def parse_toc(buffer: bytes | bytearray | memoryview) -> Toc:
    logger = get_logger()
    cur = ByteCursor(buffer, label="archive")
    try:
        toc_offset = cur.read_u32()
    except OutOfBounds as e:
        raise MalformedToc(
            E_MALFORMED_TOC,
            f"File too small for a TOC offset: {len(cur)} bytes",
            e.context,
        ) from e
    if toc_offset < TOC_OFFSET_SIZE or toc_offset > len(cur):
        raise MalformedToc(
            E_MALFORMED_TOC,
            f"TOC offset {toc_offset} outside {DATA_REGION_START}..{len(cur)}",
            {"toc_offset": toc_offset, "length": len(cur)},
        )
    cur.seek(toc_offset)
    if cur.remaining == 0:
        # A TOC offset equal to the file length is an archive with no TOC body.
        logger.debug("TOC offset %d is end of file: no entries", toc_offset)
        return Toc(toc_offset, ())
    if cur.remaining < ENTRY_COUNT_SIZE:
        raise MalformedToc(
            E_MALFORMED_TOC,
            f"TOC at {toc_offset} too short for an entry count",
            {"toc_offset": toc_offset, "length": len(cur)},
        )
    entry_count = cur.read_u32()
    if entry_count * ENTRY_RECORD_SIZE > cur.remaining:
        raise MalformedToc(
            E_MALFORMED_TOC,
            f"entry_count {entry_count} cannot fit in {cur.remaining} TOC bytes",
            {"entry_count": entry_count, "toc_offset": toc_offset},
        )
    entries: List[Entry] = []
    warnings: List[ArchiveWarning] = []
    for index in range(entry_count):
        entry = read_entry(cur, index)
        entries.append(entry)
        warnings.extend(_check_entry(entry))
    if cur.remaining:
        warnings.append(
            ArchiveWarning(
                W_TRAILING_DATA,
                f"{cur.remaining} bytes after the last TOC record",
                {"position": cur.position},
            )
        )
    for w in warnings:
        logger.warning("%s", w)
    logger.debug(
        "Parsed TOC at %d: %d entries, %d warnings",
        toc_offset,
        len(entries),
        len(warnings),
    )
    return Toc(toc_offset, tuple(entries), tuple(warnings))


def load_archive(buffer: bytes | bytearray | memoryview) -> Archive:
    data = bytes(buffer)
    toc = parse_toc(data)
    return Archive(
        data=data,
        toc_offset=toc.toc_offset,
        entries=toc.entries,
        warnings=toc.warnings,
    )
