"""Archive writer: compress payloads, lay them out and emit the TOC.

Layout is computed up front by :func:`plan_layout`; the writer then emits
the file and raises if any section lands somewhere other than planned.
Output is byte-for-byte reproducible for identical sources and codec.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..reporting import get_reporter
from .compression import Codec, default_codec
from .cursor import ByteWriter
from .models import Archive, EntrySource, FileType
from .packers import pack_entry_record
from .planner import ArchivePlan, PlannedPayload, plan_layout

__all__ = [
    "compress_sources",
    "write_archive",
    "write_archive_planned",
    "write_archive_file",
    "repack",
]


def _check_source(index: int, src: EntrySource) -> None:
    if not isinstance(src.file_type, FileType):
        raise ValueError(f"Entry {index} has invalid file_type {src.file_type!r}")
    if src.file_type is FileType.SOUND and not src.geometry.is_zero():
        raise ValueError(
            f"Sound entry {index} '{src.name!r}' must not carry geometry"
        )


def compress_sources(
    sources: Sequence[EntrySource], codec: Optional[Codec] = None
) -> List[Tuple[EntrySource, bytes]]:
    codec = codec or default_codec()
    rep = get_reporter()
    rep.start_task("compress", "Compress payloads", total=len(sources))
    out: List[Tuple[EntrySource, bytes]] = []
    for index, src in enumerate(sources):
        _check_source(index, src)
        if src.compressed is not None:
            blob = bytes(src.compressed)
        else:
            blob = codec.compress(bytes(src.data))
        out.append((src, blob))
        rep.advance("compress", current_item=src.raw_name.decode("utf-8", "replace"))
    rep.end_task(
        "compress", entries=len(out), bytes=sum(len(b) for _, b in out)
    )
    return out


def _emit(compressed: List[Tuple[EntrySource, bytes]], plan: ArchivePlan) -> bytes:
    w = ByteWriter()
    w.write_u32(0)  # toc_offset, patched once the data region is written
    for (_, blob), ep in zip(compressed, plan.entries):
        if w.position - 4 != ep.offset:
            raise RuntimeError(
                f"Payload {ep.index} at {w.position - 4}, planned {ep.offset}"
            )
        w.write_bytes(blob)
    if w.position != plan.toc_offset:
        raise RuntimeError(
            f"Data region ends at {w.position}, planned TOC at {plan.toc_offset}"
        )
    w.patch_u32(0, plan.toc_offset)
    w.write_u32(len(plan.entries))
    for (src, _), ep in zip(compressed, plan.entries):
        if w.position != ep.record_offset:
            raise RuntimeError(
                f"TOC record {ep.index} at {w.position}, planned {ep.record_offset}"
            )
        w.write_bytes(
            pack_entry_record(
                src.file_type,
                ep.size_decompressed,
                ep.size,
                src.geometry,
                ep.offset,
                src.raw_name,
            )
        )
    if len(w) != plan.file_size:
        raise RuntimeError(
            f"Archive size mismatch: plan={plan.file_size} written={len(w)}"
        )
    return w.getvalue()


def write_archive_planned(
    sources: Sequence[EntrySource], codec: Optional[Codec] = None
) -> Tuple[bytes, ArchivePlan]:
    """Like :func:`write_archive`, also returning the layout that was used."""
    logger = get_logger()
    compressed = compress_sources(sources, codec)
    plan = plan_layout(
        [
            PlannedPayload(src.raw_name, len(blob), src.decompressed_length)
            for src, blob in compressed
        ]
    )
    data = _emit(compressed, plan)
    logger.debug(
        "Wrote archive: %d entries, data region %d bytes, toc %d bytes",
        len(plan.entries),
        plan.data_region_length,
        plan.toc_size,
    )
    return data, plan


def write_archive(
    sources: Sequence[EntrySource], codec: Optional[Codec] = None
) -> bytes:
    return write_archive_planned(sources, codec)[0]


def write_archive_file(
    sources: Sequence[EntrySource],
    path: str | Path,
    codec: Optional[Codec] = None,
) -> int:
    data = write_archive(sources, codec)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data)
    return len(data)


def repack(archive: Archive) -> List[EntrySource]:
    """Write sources that re-emit ``archive``'s payloads without recompressing."""
    return [
        EntrySource(
            name=e.raw_name,
            file_type=e.file_type,
            geometry=e.geometry,
            compressed=archive.compressed_bytes(e),
            size_decompressed=e.size_decompressed,
        )
        for e in archive.entries
    ]
