"""Dataclass models for a build list (the entries to pack into an archive)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ..codec.models import CanvasGeometry, EntrySource, FileType
from ..utils.io import read_entry_data

KIND_NAMES = {"image": FileType.IMAGE, "sound": FileType.SOUND}


def _pair(value: Any) -> Tuple[int, int]:
    if value is None:
        return (0, 0)
    x, y = value
    return (int(x), int(y))


@dataclass(slots=True)
class BuildEntry:
    name: str
    file_type: FileType
    geometry: CanvasGeometry
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BuildEntry":
        file_type = KIND_NAMES[str(d["type"]).lower()]
        if file_type is FileType.SOUND:
            geometry = CanvasGeometry()
        else:
            width = int(d.get("width", 0))
            height = int(d.get("height", 0))
            geometry = CanvasGeometry(
                canvas_size=_pair(d.get("canvas_size", (width, height))),
                canvas_offset=_pair(d.get("canvas_offset")),
                crop_size=_pair(d.get("crop_size", (width, height))),
                width=width,
                height=height,
            )
        return cls(name=d["name"], file_type=file_type, geometry=geometry, raw=d)

    def to_source(self, base_dir: Path) -> EntrySource:
        return EntrySource(
            name=self.name,
            file_type=self.file_type,
            data=read_entry_data(self.raw, base_dir),
            geometry=self.geometry,
        )


@dataclass(slots=True)
class BuildList:
    version: int = 1
    entries: List[BuildEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BuildList":
        return cls(
            version=int(d.get("version", 1)),
            entries=[BuildEntry.from_dict(e) for e in d.get("entries", [])],
        )
