"""Byte-buffer compression transforms used for entry payloads.

Payloads are raw LZ4 blocks with no size prefix; the decompressed length is
carried by the TOC record instead.
"""

from __future__ import annotations

from typing import Optional, Protocol

import lz4.block

from .errors import CodecError

__all__ = ["Codec", "Lz4BlockCodec", "PassthroughCodec", "default_codec"]

_LZ4_MAX_EXPANSION = 255


class Codec(Protocol):
    name: str

    def compress(self, data: bytes) -> bytes: ...

    def decompress(self, data: bytes, size: int) -> bytes:
        """Decompress ``data``; ``size`` is the declared output length.

        Implementations may return fewer or more bytes than ``size``; the
        caller checks the length.
        """
        ...


class Lz4BlockCodec:
    name = "lz4"

    def __init__(self, level: Optional[int] = None) -> None:
        self.level = level

    def compress(self, data: bytes) -> bytes:
        if self.level is None:
            return lz4.block.compress(data, mode="default", store_size=False)
        return lz4.block.compress(
            data,
            mode="high_compression",
            compression=self.level,
            store_size=False,
        )

    def decompress(self, data: bytes, size: int) -> bytes:
        # One byte of headroom so an output that overshoots the declared size
        # by a little is reported as a length mismatch, not as corruption.
        # A block never expands past 255x, which caps the buffer for bogus
        # declared sizes.
        capacity = min(size + 1, len(data) * _LZ4_MAX_EXPANSION + 1)
        try:
            return lz4.block.decompress(data, uncompressed_size=capacity)
        except lz4.block.LZ4BlockError as e:
            raise CodecError(str(e)) from e

    def __repr__(self) -> str:
        return f"Lz4BlockCodec(level={self.level!r})"


class PassthroughCodec:
    """Identity transform for payloads stored uncompressed."""

    name = "none"

    def compress(self, data: bytes) -> bytes:
        return bytes(data)

    def decompress(self, data: bytes, size: int) -> bytes:
        return bytes(data)

    def __repr__(self) -> str:
        return "PassthroughCodec()"


def default_codec() -> Lz4BlockCodec:
    return Lz4BlockCodec()
