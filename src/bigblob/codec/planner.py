"""Layout planning for the archive writer.

The plan fixes every offset (payloads, TOC, file size) before a byte is
written; the writer consumes it and checks that what it emits lands exactly
where the plan says.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from .constants import (
    DATA_REGION_START,
    ENTRY_COUNT_SIZE,
    ENTRY_RECORD_SIZE,
    U32_MAX,
)

__all__ = ["PlannedPayload", "EntryPlan", "ArchivePlan", "plan_layout", "to_plan_dict"]


@dataclass(frozen=True, slots=True)
class PlannedPayload:
    raw_name: bytes
    compressed_size: int
    size_decompressed: int


@dataclass(frozen=True, slots=True)
class EntryPlan:
    index: int
    name: str
    offset: int  # relative to the data region
    size: int
    size_decompressed: int
    record_offset: int  # absolute file offset of the TOC record
    record_size: int


@dataclass(frozen=True, slots=True)
class ArchivePlan:
    toc_offset: int
    entries: Tuple[EntryPlan, ...]
    toc_size: int
    file_size: int

    @property
    def data_region_length(self) -> int:
        return self.toc_offset - DATA_REGION_START


def _check_u32(value: int, what: str) -> None:
    if value > U32_MAX:
        raise ValueError(f"{what} {value} does not fit a 32-bit field")


def plan_layout(payloads: Sequence[PlannedPayload]) -> ArchivePlan:
    offset = 0
    placed: List[Tuple[int, PlannedPayload]] = []
    for p in payloads:
        placed.append((offset, p))
        offset += p.compressed_size
    toc_offset = DATA_REGION_START + offset
    _check_u32(toc_offset, "TOC offset")
    _check_u32(len(payloads), "Entry count")

    entries: List[EntryPlan] = []
    cursor = toc_offset + ENTRY_COUNT_SIZE
    for index, (data_offset, p) in enumerate(placed):
        _check_u32(p.compressed_size, f"Compressed size of entry {index}")
        _check_u32(p.size_decompressed, f"Decompressed size of entry {index}")
        _check_u32(len(p.raw_name), f"Name length of entry {index}")
        record_size = ENTRY_RECORD_SIZE + len(p.raw_name)
        entries.append(
            EntryPlan(
                index=index,
                name=p.raw_name.decode("utf-8", errors="replace"),
                offset=data_offset,
                size=p.compressed_size,
                size_decompressed=p.size_decompressed,
                record_offset=cursor,
                record_size=record_size,
            )
        )
        cursor += record_size
    return ArchivePlan(
        toc_offset=toc_offset,
        entries=tuple(entries),
        toc_size=cursor - toc_offset,
        file_size=cursor,
    )


def to_plan_dict(plan: ArchivePlan) -> Dict[str, Any]:
    return {
        "toc_offset": plan.toc_offset,
        "toc_size": plan.toc_size,
        "file_size": plan.file_size,
        "data_region_length": plan.data_region_length,
        "entries": [
            {
                "index": e.index,
                "name": e.name,
                "offset": e.offset,
                "size": e.size,
                "size_decompressed": e.size_decompressed,
                "record_offset": e.record_offset,
            }
            for e in plan.entries
        ],
    }
