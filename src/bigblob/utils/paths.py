"""Path utilities (safe resolution)."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

__all__ = ["safe_file_path", "entry_output_path"]


def safe_file_path(base_dir: Path, file_path: str) -> Path:
    base_dir = base_dir.resolve()
    resolved = (base_dir / file_path).resolve()
    resolved.relative_to(base_dir)  # raises ValueError if escapes
    return resolved


def entry_output_path(output_dir: Path, name: str, suffix: str | None = None) -> Path:
    """Map an archive entry name onto a file under ``output_dir``.

    Entry names use ``/`` or ``\\`` separators; absolute names and names that
    climb out of ``output_dir`` raise ValueError.
    """
    rel = PurePosixPath(name.replace("\\", "/"))
    if rel.is_absolute() or not rel.parts or name.strip() == "":
        raise ValueError(f"Unusable entry name for extraction: {name!r}")
    if suffix is not None:
        rel = rel.with_suffix(suffix)
    return safe_file_path(output_dir, str(rel))
