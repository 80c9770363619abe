import struct

import pytest

from bigblob.codec.cursor import ByteCursor, ByteWriter
from bigblob.codec.errors import E_OUT_OF_BOUNDS, OutOfBounds


def test_reads_little_endian_widths():
    buf = struct.pack("<BHIQbhiq", 0xAB, 0x1234, 0xDEADBEEF, 2**40 + 7, -1, -2, -3, -4)
    cur = ByteCursor(buf)
    assert cur.read_u8() == 0xAB
    assert cur.read_u16() == 0x1234
    assert cur.read_u32() == 0xDEADBEEF
    assert cur.read_u64() == 2**40 + 7
    assert cur.read_i8() == -1
    assert cur.read_i16() == -2
    assert cur.read_i32() == -3
    assert cur.read_i64() == -4
    assert cur.remaining == 0


def test_read_past_end_fails_without_moving():
    cur = ByteCursor(b"\x01\x02\x03")
    with pytest.raises(OutOfBounds) as exc:
        cur.read_u32()
    assert exc.value.code == E_OUT_OF_BOUNDS
    assert cur.position == 0
    assert cur.read_u16() == 0x0201


def test_read_bytes_exact_or_fail():
    cur = ByteCursor(b"abcdef")
    cur.seek(2)
    assert cur.read_bytes(3) == b"cde"
    with pytest.raises(OutOfBounds):
        cur.read_bytes(2)
    with pytest.raises(OutOfBounds):
        cur.read_bytes(-1)


def test_seek_bounds():
    cur = ByteCursor(b"\x00" * 8)
    cur.seek(8)  # end is a valid position
    assert cur.remaining == 0
    with pytest.raises(OutOfBounds):
        cur.seek(9)
    with pytest.raises(OutOfBounds):
        cur.seek(-1)


def test_u32_pair_and_peek():
    cur = ByteCursor(struct.pack("<II", 640, 480))
    assert cur.peek_u32() == 640
    assert cur.read_u32_pair() == (640, 480)


def test_writer_patch_and_overflow():
    w = ByteWriter()
    w.write_u32(0)
    w.write_bytes(b"payload")
    w.patch_u32(0, len(w))
    assert w.position == len(w)
    w.write_u16(7)
    data = w.getvalue()
    assert struct.unpack_from("<I", data, 0)[0] == 11
    assert data[4:11] == b"payload"
    assert data[11:] == b"\x07\x00"
    with pytest.raises(ValueError):
        w.write_u32(2**32)
    with pytest.raises(ValueError):
        w.write_u8(-1)
    with pytest.raises(ValueError):
        w.patch_u32(len(w) - 2, 1)
