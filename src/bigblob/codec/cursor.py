"""Bounds-checked little-endian reader and writer over an in-memory buffer.

Every read validates ``position + width <= len(buffer)`` before touching the
data and raises :class:`OutOfBounds` otherwise; archive bytes come from
outside and are never trusted.
"""

from __future__ import annotations

import struct
from typing import Tuple

from .errors import E_OUT_OF_BOUNDS, OutOfBounds

__all__ = ["ByteCursor", "ByteWriter"]

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_I8 = struct.Struct("<b")
_I16 = struct.Struct("<h")
_I32 = struct.Struct("<i")
_I64 = struct.Struct("<q")
_U32_PAIR = struct.Struct("<II")


class ByteCursor:
    """Sequential / random-access reader over a fixed buffer."""

    __slots__ = ("_buf", "_pos", "label")

    def __init__(
        self, buffer: bytes | bytearray | memoryview, label: str = "buffer"
    ) -> None:
        self._buf = memoryview(buffer).cast("B")
        self._pos = 0
        self.label = label

    def __len__(self) -> int:
        return len(self._buf)

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def _check(self, size: int, what: str) -> None:
        if size < 0 or self._pos + size > len(self._buf):
            raise OutOfBounds(
                E_OUT_OF_BOUNDS,
                f"Out of range read for {what}: "
                f"{self._pos}+{size}>{len(self._buf)} in {self.label}",
                {"position": self._pos, "size": size, "length": len(self._buf)},
            )

    def seek(self, position: int) -> None:
        if position < 0 or position > len(self._buf):
            raise OutOfBounds(
                E_OUT_OF_BOUNDS,
                f"Seek to {position} outside {self.label} of {len(self._buf)} bytes",
                {"position": position, "length": len(self._buf)},
            )
        self._pos = position

    def skip(self, size: int) -> None:
        self._check(size, "skip")
        self._pos += size

    def _unpack(self, fmt: struct.Struct, what: str):
        self._check(fmt.size, what)
        (value,) = fmt.unpack_from(self._buf, self._pos)
        self._pos += fmt.size
        return value

    def read_u8(self) -> int:
        return self._unpack(_U8, "u8")

    def read_u16(self) -> int:
        return self._unpack(_U16, "u16")

    def read_u32(self) -> int:
        return self._unpack(_U32, "u32")

    def read_u64(self) -> int:
        return self._unpack(_U64, "u64")

    def read_i8(self) -> int:
        return self._unpack(_I8, "i8")

    def read_i16(self) -> int:
        return self._unpack(_I16, "i16")

    def read_i32(self) -> int:
        return self._unpack(_I32, "i32")

    def read_i64(self) -> int:
        return self._unpack(_I64, "i64")

    def read_u32_pair(self) -> Tuple[int, int]:
        self._check(_U32_PAIR.size, "u32 pair")
        pair = _U32_PAIR.unpack_from(self._buf, self._pos)
        self._pos += _U32_PAIR.size
        return pair

    def peek_u32(self) -> int:
        self._check(_U32.size, "u32")
        return _U32.unpack_from(self._buf, self._pos)[0]

    def read_view(self, size: int, what: str = "bytes") -> memoryview:
        """Return a zero-copy view of exactly ``size`` bytes."""
        self._check(size, what)
        view = self._buf[self._pos : self._pos + size]
        self._pos += size
        return view

    def read_bytes(self, size: int, what: str = "bytes") -> bytes:
        return self.read_view(size, what).tobytes()


class ByteWriter:
    """Append-mostly writer mirroring :class:`ByteCursor`.

    ``seek`` may only move within bytes already written; writing after a
    backwards seek overwrites in place and extends past the end as needed.
    """

    __slots__ = ("_buf", "_pos")

    def __init__(self) -> None:
        self._buf = bytearray()
        self._pos = 0

    def __len__(self) -> int:
        return len(self._buf)

    @property
    def position(self) -> int:
        return self._pos

    def seek(self, position: int) -> None:
        if position < 0 or position > len(self._buf):
            raise ValueError(
                f"Writer seek to {position} outside written range 0..{len(self._buf)}"
            )
        self._pos = position

    def seek_end(self) -> None:
        self._pos = len(self._buf)

    def write_bytes(self, data: bytes | bytearray | memoryview) -> None:
        end = self._pos + len(data)
        self._buf[self._pos : end] = data
        self._pos = end

    def _pack(self, fmt: struct.Struct, value: int, what: str) -> None:
        try:
            self.write_bytes(fmt.pack(value))
        except struct.error as e:
            raise ValueError(f"Value {value!r} does not fit {what}") from e

    def write_u8(self, value: int) -> None:
        self._pack(_U8, value, "u8")

    def write_u16(self, value: int) -> None:
        self._pack(_U16, value, "u16")

    def write_u32(self, value: int) -> None:
        self._pack(_U32, value, "u32")

    def write_u64(self, value: int) -> None:
        self._pack(_U64, value, "u64")

    def write_i8(self, value: int) -> None:
        self._pack(_I8, value, "i8")

    def write_i16(self, value: int) -> None:
        self._pack(_I16, value, "i16")

    def write_i32(self, value: int) -> None:
        self._pack(_I32, value, "i32")

    def write_i64(self, value: int) -> None:
        self._pack(_I64, value, "i64")

    def write_u32_pair(self, pair: Tuple[int, int]) -> None:
        self.write_u32(pair[0])
        self.write_u32(pair[1])

    def patch_u32(self, position: int, value: int) -> None:
        """Overwrite a u32 already written at ``position``, then return to the end."""
        if position + _U32.size > len(self._buf):
            raise ValueError(f"Cannot patch u32 at {position}: not yet written")
        self.seek(position)
        self.write_u32(value)
        self.seek_end()

    def getvalue(self) -> bytes:
        return bytes(self._buf)
