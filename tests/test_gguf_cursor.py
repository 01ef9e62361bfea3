import struct

import pytest

from gguf_info.model_formats.gguf.gguf import InvalidUTF8Error, UnexpectedEOFError
from gguf_info.model_formats.gguf.gguf_cursor import GGUFCursor


def test_fixed_width_reads_are_little_endian_and_advance():
    buf = (
        struct.pack("<B", 0xAB)
        + struct.pack("<h", -2)
        + struct.pack("<I", 0xDEADBEEF)
        + struct.pack("<q", -(2**40))
        + struct.pack("<f", 1.5)
        + struct.pack("<d", -0.25)
    )
    cur = GGUFCursor(buf)
    assert cur.read_u8() == 0xAB
    assert cur.position == 1
    assert cur.read_i16() == -2
    assert cur.read_u32() == 0xDEADBEEF
    assert cur.read_i64() == -(2**40)
    assert cur.read_f32() == 1.5
    assert cur.read_f64() == -0.25
    assert cur.position == len(buf)
    assert cur.remaining_len() == 0


def test_signed_and_unsigned_views_of_same_bytes():
    cur = GGUFCursor(b"\xff" * 8)
    assert cur.read_i8() == -1
    cur.seek_to(0)
    assert cur.read_u8() == 255
    cur.seek_to(0)
    assert cur.read_u16() == 0xFFFF
    cur.seek_to(0)
    assert cur.read_i32() == -1
    cur.seek_to(0)
    assert cur.read_u64() == 2**64 - 1


@pytest.mark.parametrize("raw, expected", [(b"\x00", False), (b"\x01", True), (b"\x7f", True)])
def test_read_bool_treats_nonzero_as_true(raw, expected):
    assert GGUFCursor(raw).read_bool() is expected


def test_read_string_u64_prefix():
    cur = GGUFCursor(struct.pack("<Q", 5) + b"hello" + b"tail")
    assert cur.read_string() == "hello"
    assert cur.position == 13
    assert cur.read_bytes(4) == b"tail"


def test_read_string_u32_prefix():
    cur = GGUFCursor(struct.pack("<I", 2) + "é".encode())
    assert cur.read_string(length_width=4) == "é"
    assert cur.remaining_len() == 0


def test_short_read_raises_and_keeps_position():
    cur = GGUFCursor(b"\x01\x02\x03")
    cur.read_u8()
    with pytest.raises(UnexpectedEOFError) as exc:
        cur.read_u32()
    assert exc.value.offset == 1
    assert cur.position == 1


def test_string_longer_than_buffer_is_eof():
    cur = GGUFCursor(struct.pack("<Q", 100) + b"abc")
    with pytest.raises(UnexpectedEOFError):
        cur.read_string()
    assert cur.position == 0


def test_invalid_utf8_string():
    cur = GGUFCursor(struct.pack("<Q", 2) + b"\xc3\x28")
    with pytest.raises(InvalidUTF8Error) as exc:
        cur.read_string()
    assert exc.value.offset == 0
    assert cur.position == 0


def test_seek_bounds():
    cur = GGUFCursor(b"abcd")
    cur.seek_to(4)
    assert cur.remaining_len() == 0
    with pytest.raises(UnexpectedEOFError):
        cur.seek_to(5)
    with pytest.raises(UnexpectedEOFError):
        cur.seek_to(-1)


def test_read_bytes_negative_or_too_long():
    cur = GGUFCursor(b"ab")
    with pytest.raises(UnexpectedEOFError):
        cur.read_bytes(3)
    assert cur.read_bytes(0) == b""
    assert cur.read_bytes(2) == b"ab"


def test_accepts_memoryview_and_bytearray():
    assert GGUFCursor(memoryview(b"\x07")).read_u8() == 7
    assert GGUFCursor(bytearray(b"\x08")).read_u8() == 8
