"""Pure binary packing functions for TOC records.

All functions are side-effect free and validate the emitted sizes.
"""

from __future__ import annotations

from .constants import ENTRY_RECORD_SIZE, GEOMETRY_SIZE, U32_MAX
from .cursor import ByteWriter
from .errors import BigblobError, E_SIZE_MISMATCH
from .models import CanvasGeometry, FileType

__all__ = [
    "pack_geometry",
    "pack_entry_record",
]


def pack_geometry(geometry: CanvasGeometry) -> bytes:
    w = ByteWriter()
    for pair in geometry.pairs:
        w.write_u32_pair(pair)
    w.write_u32(geometry.width)
    w.write_u32(geometry.height)
    out = w.getvalue()
    if len(out) != GEOMETRY_SIZE:
        raise BigblobError(
            E_SIZE_MISMATCH, f"Geometry record size mismatch: {len(out)}"
        )
    return out


def pack_entry_record(
    file_type: FileType,
    size_decompressed: int,
    size: int,
    geometry: CanvasGeometry,
    offset: int,
    raw_name: bytes,
) -> bytes:
    """Fixed 52-byte record followed by the name bytes."""
    if len(raw_name) > U32_MAX:
        raise ValueError(f"Entry name too long: {len(raw_name)} bytes")
    w = ByteWriter()
    w.write_u32(int(file_type))
    w.write_u32(size_decompressed)
    w.write_u32(size)
    w.write_bytes(pack_geometry(geometry))
    w.write_u32(offset)
    w.write_u32(len(raw_name))
    if w.position != ENTRY_RECORD_SIZE:
        raise BigblobError(
            E_SIZE_MISMATCH, f"Entry record size mismatch: {w.position}"
        )
    w.write_bytes(raw_name)
    return w.getvalue()
