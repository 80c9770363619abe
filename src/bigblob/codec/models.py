"""Dataclass models for parsed and to-be-written bigblob entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple

from .constants import DATA_REGION_START
from .errors import ArchiveWarning

__all__ = [
    "FileType",
    "CanvasGeometry",
    "Entry",
    "Archive",
    "EntrySource",
]

Pair = Tuple[int, int]


class FileType(IntEnum):
    IMAGE = 0
    SOUND = 1

    @property
    def label(self) -> str:
        return self.name.title()


@dataclass(frozen=True, slots=True)
class CanvasGeometry:
    """The 32 geometry bytes of a TOC record, exposed verbatim.

    ``canvas_size`` / ``canvas_offset`` / ``crop_size`` are believed to
    describe the atlas the image was cut from; nothing here relies on that.
    """

    canvas_size: Pair = (0, 0)
    canvas_offset: Pair = (0, 0)
    crop_size: Pair = (0, 0)
    width: int = 0
    height: int = 0

    @property
    def pairs(self) -> Tuple[Pair, Pair, Pair]:
        return (self.canvas_size, self.canvas_offset, self.crop_size)

    def is_zero(self) -> bool:
        return self.width == 0 and self.height == 0 and all(
            x == 0 and y == 0 for x, y in self.pairs
        )

    def to_dict(self) -> dict:
        return {
            "canvas_size": list(self.canvas_size),
            "canvas_offset": list(self.canvas_offset),
            "crop_size": list(self.crop_size),
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True, slots=True)
class Entry:
    index: int
    file_type: FileType
    size_decompressed: int
    size: int
    offset: int
    raw_name: bytes
    geometry: CanvasGeometry = field(default_factory=CanvasGeometry)

    @property
    def name(self) -> str:
        return self.raw_name.decode("utf-8", errors="replace")

    @property
    def end(self) -> int:
        return self.offset + self.size

    @property
    def is_image(self) -> bool:
        return self.file_type is FileType.IMAGE

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "name": self.name,
            "kind": self.file_type.label,
            "size_decompressed": self.size_decompressed,
            "size": self.size,
            "offset": self.offset,
            "geometry": self.geometry.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class Archive:
    """A parsed archive: the whole file buffer plus its ordered entries.

    The buffer is shared read-only by every extraction; nothing mutates it.
    """

    data: bytes
    toc_offset: int
    entries: Tuple[Entry, ...]
    warnings: Tuple[ArchiveWarning, ...] = ()

    @property
    def data_region(self) -> memoryview:
        return memoryview(self.data)[DATA_REGION_START : self.toc_offset]

    @property
    def data_region_length(self) -> int:
        return self.toc_offset - DATA_REGION_START

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def find(self, name: str) -> Optional[Entry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def find_all(self, name: str) -> List[Entry]:
        return [e for e in self.entries if e.name == name]

    def compressed_bytes(self, entry: Entry) -> bytes:
        """Raw compressed payload of ``entry``; no range validation."""
        return self.data_region[entry.offset : entry.end].tobytes()


@dataclass(slots=True)
class EntrySource:
    """One entry on the write path.

    ``data`` is the decompressed payload. When ``compressed`` is set it is
    emitted as-is and ``data`` is only used for its length, unless
    ``size_decompressed`` is given explicitly.
    """

    name: str | bytes
    file_type: FileType
    data: bytes = b""
    geometry: CanvasGeometry = field(default_factory=CanvasGeometry)
    compressed: Optional[bytes] = None
    size_decompressed: Optional[int] = None

    @property
    def raw_name(self) -> bytes:
        if isinstance(self.name, bytes):
            return self.name
        return self.name.encode("utf-8")

    @property
    def decompressed_length(self) -> int:
        if self.size_decompressed is not None:
            return self.size_decompressed
        return len(self.data)
