"""Image entry reconstruction.

Image payloads (named ``*.png`` in the archive) are BC7 textures with a full
mip chain stored largest level first. Each level halves both dimensions
(floored, never below 1) and occupies ``ceil(w/4) * ceil(h/4) * 16`` bytes;
the chain ends with the level where both dimensions are 1.

The byte count of that chain must equal the entry's ``size_decompressed``.
That equality is the only check that the mip-chain reading of the format is
right, so a mismatch is surfaced instead of being papered over.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..logging import get_logger
from .constants import BC7_BLOCK_BYTES, BC7_BLOCK_DIM
from .errors import (
    ArchiveWarning,
    E_MIP_CHAIN,
    MipChainMismatch,
    W_MIP_CHAIN,
    entry_context,
)
from .models import CanvasGeometry, Entry, FileType

__all__ = [
    "MipLevel",
    "MipView",
    "ImageAsset",
    "SoundAsset",
    "mip_count",
    "mip_level_size",
    "mip_chain",
    "mip_chain_size",
    "reconstruct_image",
    "decode_mip_rgba",
]


@dataclass(frozen=True, slots=True)
class MipLevel:
    level: int
    width: int
    height: int
    offset: int
    size: int


@dataclass(frozen=True, slots=True)
class MipView:
    level: int
    width: int
    height: int
    data: bytes


@dataclass(frozen=True, slots=True)
class ImageAsset:
    name: str
    width: int
    height: int
    geometry: CanvasGeometry
    mips: Tuple[MipView, ...]
    raw: bytes
    warnings: Tuple[ArchiveWarning, ...] = ()

    kind = FileType.IMAGE

    @property
    def complete(self) -> bool:
        return not self.warnings


@dataclass(frozen=True, slots=True)
class SoundAsset:
    name: str
    data: bytes

    kind = FileType.SOUND


def _blocks(n: int) -> int:
    return (n + BC7_BLOCK_DIM - 1) // BC7_BLOCK_DIM


def mip_level_size(width: int, height: int) -> int:
    return _blocks(width) * _blocks(height) * BC7_BLOCK_BYTES


def mip_count(width: int, height: int) -> int:
    if width <= 0 or height <= 0:
        return 0
    return max(width, height).bit_length()


def mip_chain(width: int, height: int) -> List[MipLevel]:
    levels: List[MipLevel] = []
    offset = 0
    for level in range(mip_count(width, height)):
        w = max(1, width >> level)
        h = max(1, height >> level)
        size = mip_level_size(w, h)
        levels.append(MipLevel(level, w, h, offset, size))
        offset += size
    return levels


def mip_chain_size(width: int, height: int) -> int:
    return sum(m.size for m in mip_chain(width, height))


def reconstruct_image(
    entry: Entry, data: bytes, *, strict: bool = False
) -> ImageAsset:
    """Split an image entry's decompressed bytes into its mip levels.

    With ``strict`` a byte count that disagrees with the computed chain
    raises :class:`MipChainMismatch`; otherwise a warning is recorded, the
    raw bytes are kept and only the levels that fit completely are exposed.
    """
    width = entry.geometry.width
    height = entry.geometry.height
    chain = mip_chain(width, height)
    expected = sum(m.size for m in chain)
    warnings: List[ArchiveWarning] = []
    if expected != len(data):
        ctx = entry_context(
            entry.index,
            entry.name,
            width=width,
            height=height,
            expected=expected,
            actual=len(data),
        )
        msg = (
            f"Image '{entry.name}' ({width}x{height}) holds {len(data)} bytes, "
            f"a BC7 mip chain needs {expected}"
        )
        if strict:
            raise MipChainMismatch(E_MIP_CHAIN, msg, ctx)
        warnings.append(ArchiveWarning(W_MIP_CHAIN, msg, ctx))
        get_logger().warning("%s", msg)
    mips = tuple(
        MipView(m.level, m.width, m.height, data[m.offset : m.offset + m.size])
        for m in chain
        if m.offset + m.size <= len(data)
    )
    return ImageAsset(
        name=entry.name,
        width=width,
        height=height,
        geometry=entry.geometry,
        mips=mips,
        raw=data,
        warnings=tuple(warnings),
    )


def decode_mip_rgba(mip: MipView, decoder: Optional[object] = None):
    """Decode one BC7 mip level to a Pillow RGBA image.

    ``decoder`` defaults to ``texture2ddecoder``; any object with a
    ``decode_bc7(data, width, height) -> BGRA bytes`` function will do.
    """
    from PIL import Image

    if decoder is None:
        import texture2ddecoder as decoder  # type: ignore[no-redef]

    # The decoder works on whole 4x4 blocks; crop the padding afterwards.
    bw = _blocks(mip.width) * BC7_BLOCK_DIM
    bh = _blocks(mip.height) * BC7_BLOCK_DIM
    bgra = decoder.decode_bc7(mip.data, bw, bh)  # type: ignore[attr-defined]
    img = Image.frombytes("RGBA", (bw, bh), bgra, "raw", "BGRA")
    if (bw, bh) != (mip.width, mip.height):
        img = img.crop((0, 0, mip.width, mip.height))
    return img
