"""Payload extraction: slice an entry's compressed bytes and decompress them.

Entries never overlap in the data region and the archive buffer is
immutable, so extraction of different entries runs on worker threads with no
locking. A failing entry is recorded and the others carry on.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..logging import get_logger
from ..reporting import get_reporter, TaskStatus
from .compression import Codec, default_codec
from .errors import (
    CodecError,
    DecompressionError,
    EntryError,
    E_DECOMPRESS,
    E_OFFSET_RANGE,
    E_SIZE_MISMATCH,
    OffsetOutOfRange,
    SizeMismatch,
    entry_context,
)
from .models import Archive, Entry

__all__ = [
    "ExtractionResult",
    "check_entry_range",
    "extract_payload",
    "extract_entries",
    "default_max_workers",
]


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    entry: Entry
    data: Optional[bytes] = None
    error: Optional[EntryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def check_entry_range(entry: Entry, region_length: int) -> None:
    if entry.offset + entry.size > region_length:
        raise OffsetOutOfRange(
            E_OFFSET_RANGE,
            f"Entry '{entry.name}' payload {entry.offset}+{entry.size} "
            f"exceeds data region of {region_length} bytes",
            entry_context(
                entry.index,
                entry.name,
                offset=entry.offset,
                size=entry.size,
                region_length=region_length,
            ),
        )


def extract_payload(
    entry: Entry,
    region: bytes | bytearray | memoryview,
    codec: Optional[Codec] = None,
) -> bytes:
    """Return exactly ``entry.size_decompressed`` bytes or raise an EntryError."""
    codec = codec or default_codec()
    region = memoryview(region)
    check_entry_range(entry, len(region))
    compressed = region[entry.offset : entry.end].tobytes()
    if not compressed:
        out = b""
    else:
        try:
            out = codec.decompress(compressed, entry.size_decompressed)
        except CodecError as e:
            raise DecompressionError(
                E_DECOMPRESS,
                f"Entry '{entry.name}' is not valid {codec.name} data: {e}",
                entry_context(entry.index, entry.name, offset=entry.offset),
            ) from e
    if len(out) != entry.size_decompressed:
        raise SizeMismatch(
            E_SIZE_MISMATCH,
            f"Entry '{entry.name}' decompressed to {len(out)} bytes, "
            f"declared {entry.size_decompressed}",
            entry_context(
                entry.index,
                entry.name,
                declared=entry.size_decompressed,
                actual=len(out),
            ),
        )
    return out


def default_max_workers() -> int:
    env = os.getenv("BIGBLOB_MAX_WORKERS")
    if env:
        try:
            return max(1, int(env))
        except ValueError:
            get_logger().warning(
                "Ignoring invalid BIGBLOB_MAX_WORKERS=%r", env
            )
    return min(8, os.cpu_count() or 1)


def _select(archive: Archive, names: Optional[Iterable[str]]) -> List[Entry]:
    if names is None:
        return list(archive.entries)
    wanted = set(names)
    return [e for e in archive.entries if e.name in wanted]


def extract_entries(
    archive: Archive,
    codec: Optional[Codec] = None,
    *,
    max_workers: Optional[int] = None,
    names: Optional[Iterable[str]] = None,
) -> List[ExtractionResult]:
    """Extract selected entries (all by default), results in TOC order."""
    logger = get_logger()
    rep = get_reporter()
    codec = codec or default_codec()
    region = archive.data_region
    entries = _select(archive, names)
    workers = max_workers if max_workers is not None else default_max_workers()

    def _one(entry: Entry) -> ExtractionResult:
        try:
            data = extract_payload(entry, region, codec)
        except EntryError as e:
            logger.error("%s", e)
            return ExtractionResult(entry, error=e)
        return ExtractionResult(entry, data=data)

    rep.start_task("extract", "Extract entries", total=len(entries))
    results: List[ExtractionResult] = []
    if workers <= 1 or len(entries) <= 1:
        for entry in entries:
            results.append(_one(entry))
            rep.advance("extract", current_item=entry.name)
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # map() yields in submission order, i.e. TOC order
            for res in pool.map(_one, entries):
                results.append(res)
                rep.advance("extract", current_item=res.entry.name)
    failed = sum(1 for r in results if not r.ok)
    rep.end_task(
        "extract",
        TaskStatus.FAILED if failed else TaskStatus.SUCCESS,
        entries=len(results),
        failed=failed,
    )
    return results
