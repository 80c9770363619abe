"""Archive inspection and structural validation.

Public functions:
- inspect_archive(path_or_bytes) -> dict
- validate_archive(archive) -> list[str]
- describe_entries(archive) -> list[str]

Validation works on TOC metadata only; it never decompresses payloads.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from .constants import DATA_REGION_START
from .image import mip_chain_size
from .models import Archive, FileType
from .toc import load_archive

__all__ = ["inspect_archive", "validate_archive", "describe_entries"]


def _as_archive(source: Archive | str | Path | bytes) -> Archive:
    if isinstance(source, Archive):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        return load_archive(source)
    return load_archive(Path(source).read_bytes())


def inspect_archive(source: Archive | str | Path | bytes) -> Dict[str, Any]:
    archive = _as_archive(source)
    counts = {t.label: 0 for t in FileType}
    for e in archive.entries:
        counts[e.file_type.label] += 1
    return {
        "file_size": len(archive.data),
        "toc_offset": archive.toc_offset,
        "data_region": {
            "offset": DATA_REGION_START,
            "size": archive.data_region_length,
        },
        "entry_count": len(archive.entries),
        "counts": counts,
        "entries": [e.to_dict() for e in archive.entries],
        "warnings": [w.to_dict() for w in archive.warnings],
    }


def validate_archive(archive: Archive) -> List[str]:
    issues: List[str] = []
    region_length = archive.data_region_length
    for e in archive.entries:
        if e.end > region_length:
            issues.append(
                f"Entry {e.index} '{e.name}' exceeds data region "
                f"({e.offset}+{e.size}>{region_length})"
            )
        if e.file_type is FileType.SOUND and not e.geometry.is_zero():
            issues.append(f"Sound entry {e.index} '{e.name}' has non-zero geometry")
        if e.file_type is FileType.IMAGE:
            expected = mip_chain_size(e.geometry.width, e.geometry.height)
            if expected != e.size_decompressed:
                issues.append(
                    f"Image entry {e.index} '{e.name}' declares "
                    f"{e.size_decompressed} bytes, mip chain needs {expected}"
                )

    # Payload ranges must be disjoint; an identical range is shared payload.
    ranged = sorted(
        (e for e in archive.entries if e.size), key=lambda e: (e.offset, e.end)
    )
    furthest = None
    for cur in ranged:
        if furthest is not None:
            if (furthest.offset, furthest.size) == (cur.offset, cur.size):
                if furthest.size_decompressed != cur.size_decompressed:
                    issues.append(
                        f"Entries {furthest.index} and {cur.index} share a "
                        f"payload but declare different decompressed sizes"
                    )
            elif cur.offset < furthest.end:
                issues.append(
                    f"Entries {furthest.index} '{furthest.name}' and "
                    f"{cur.index} '{cur.name}' overlap in the data region"
                )
        if furthest is None or cur.end > furthest.end:
            furthest = cur
    return issues


def describe_entries(archive: Archive) -> List[str]:
    lines: List[str] = []
    for e in archive.entries:
        lines.append(
            f"{e.name} ({e.file_type.label}) ({e.size} bytes @ {e.offset:#x}; "
            f"{e.size_decompressed} decompressed)"
        )
        if e.file_type is FileType.IMAGE:
            g = e.geometry
            lines.append(f"    dimensions: {g.width}x{g.height}")
            for i, (x, y) in enumerate(g.pairs):
                if (i, x, y) == (2, g.width, g.height):
                    lines.append(f"    canvas{i}: <same as dimensions>")
                else:
                    lines.append(f"    canvas{i}: {x}x{y}")
    return lines
