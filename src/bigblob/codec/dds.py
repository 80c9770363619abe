"""DDS container export for image entries.

Image payloads are already a BC7 mip chain in DDS order, so a ``.dds`` file
is just a DX10 header in front of the decompressed bytes.
"""

from __future__ import annotations

from .constants import (
    DDS_HEADER_SIZE,
    DDS_MAGIC,
    DDS_TOTAL_HEADER_SIZE,
    DXGI_FORMAT_BC7_UNORM,
)
from .cursor import ByteWriter
from .errors import BigblobError, E_SIZE_MISMATCH
from .image import ImageAsset, mip_count

__all__ = ["dds_header", "to_dds"]

# DDSD_CAPS | HEIGHT | WIDTH | PIXELFORMAT | MIPMAPCOUNT | LINEARSIZE
_DDSD_FLAGS = 0x000A1007
# DDSCAPS_COMPLEX | TEXTURE | MIPMAP
_DDSCAPS = 0x00401008
_DDPF_FOURCC = 0x4
_DDS_PIXELFORMAT_SIZE = 32
_D3D10_RESOURCE_DIMENSION_TEXTURE2D = 3
_DDS_ALPHA_MODE_STRAIGHT = 1


def _align4(v: int) -> int:
    return (v + 3) // 4 * 4


def dds_header(width: int, height: int, mips: int | None = None) -> bytes:
    if mips is None:
        mips = mip_count(width, height)
    w = ByteWriter()
    w.write_bytes(DDS_MAGIC)
    w.write_u32(DDS_HEADER_SIZE)
    w.write_u32(_DDSD_FLAGS)
    w.write_u32(height)
    w.write_u32(width)
    w.write_u32(_align4(width) * _align4(height))  # top level byte size
    w.write_u32(0)  # depth
    w.write_u32(mips)
    w.write_bytes(b"\x00" * 44)  # reserved1
    # pixel format
    w.write_u32(_DDS_PIXELFORMAT_SIZE)
    w.write_u32(_DDPF_FOURCC)
    w.write_bytes(b"DX10")
    w.write_bytes(b"\x00" * 20)
    w.write_u32(_DDSCAPS)
    w.write_bytes(b"\x00" * 16)  # caps2..4, reserved2
    # DX10 extension
    w.write_u32(DXGI_FORMAT_BC7_UNORM)
    w.write_u32(_D3D10_RESOURCE_DIMENSION_TEXTURE2D)
    w.write_u32(0)  # misc flags
    w.write_u32(1)  # array size
    w.write_u32(_DDS_ALPHA_MODE_STRAIGHT)
    out = w.getvalue()
    if len(out) != DDS_TOTAL_HEADER_SIZE:
        raise BigblobError(E_SIZE_MISMATCH, f"DDS header size mismatch: {len(out)}")
    return out


def to_dds(image: ImageAsset) -> bytes:
    return dds_header(image.width, image.height) + image.raw
