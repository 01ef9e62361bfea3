# gguf_info/model_formats/gguf/gguf_cursor.py
"""
Bounds-checked little-endian reader over an in-memory or mmapped buffer.
"""

from __future__ import annotations

import struct
from typing import Union

from .gguf import InvalidUTF8Error, UnexpectedEOFError

Buffer = Union[bytes, bytearray, memoryview]

_U8 = struct.Struct("<B")
_I8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")


class GGUFCursor:
    """Sequential reader that tracks its position over a finite buffer.

    Reads never touch the buffer's contents beyond the bytes they return, and
    a failed read leaves the position where it was.
    """

    __slots__ = ("_buf", "_pos", "_size")

    def __init__(self, buf: Buffer, offset: int = 0):
        self._buf = memoryview(buf).cast("B")
        self._size = len(self._buf)
        self._pos = 0
        self.seek_to(offset)

    @property
    def position(self) -> int:
        return self._pos

    def __len__(self) -> int:
        return self._size

    def release(self) -> None:
        """Drop the view so an underlying mmap can be closed."""
        self._buf.release()

    def remaining_len(self) -> int:
        return self._size - self._pos

    def seek_to(self, offset: int) -> None:
        if not 0 <= offset <= self._size:
            raise UnexpectedEOFError(
                f"Seek to {offset} outside buffer of {self._size} bytes", offset=self._pos
            )
        self._pos = offset

    def _require(self, n: int, what: str) -> None:
        if n < 0 or n > self._size - self._pos:
            raise UnexpectedEOFError(
                f"Read beyond EOF: {what} needs {n} bytes, {self.remaining_len()} remain",
                offset=self._pos,
            )

    def _unpack(self, st: struct.Struct, what: str):
        self._require(st.size, what)
        (v,) = st.unpack_from(self._buf, self._pos)
        self._pos += st.size
        return v

    def read_u8(self) -> int:
        return self._unpack(_U8, "u8")

    def read_i8(self) -> int:
        return self._unpack(_I8, "i8")

    def read_u16(self) -> int:
        return self._unpack(_U16, "u16")

    def read_i16(self) -> int:
        return self._unpack(_I16, "i16")

    def read_u32(self) -> int:
        return self._unpack(_U32, "u32")

    def read_i32(self) -> int:
        return self._unpack(_I32, "i32")

    def read_u64(self) -> int:
        return self._unpack(_U64, "u64")

    def read_i64(self) -> int:
        return self._unpack(_I64, "i64")

    def read_f32(self) -> float:
        return self._unpack(_F32, "f32")

    def read_f64(self) -> float:
        return self._unpack(_F64, "f64")

    def read_bool(self) -> bool:
        return self._unpack(_U8, "bool") != 0

    def read_uint(self, width: int) -> int:
        """Read an unsigned integer of ``width`` bytes (4 or 8)."""
        return self.read_u32() if width == 4 else self.read_u64()

    def read_bytes(self, n: int) -> bytes:
        self._require(n, f"{n}-byte field")
        out = bytes(self._buf[self._pos : self._pos + n])
        self._pos += n
        return out

    def read_string(self, length_width: int = 8) -> str:
        """Read a length-prefixed UTF-8 string.

        Args:
            length_width: Width in bytes of the length prefix (8 for GGUF v2+,
                4 for GGUF v1).
        """
        start = self._pos
        n = self.read_uint(length_width)
        try:
            self._require(n, "string")
        except UnexpectedEOFError:
            self._pos = start
            raise
        try:
            s = bytes(self._buf[self._pos : self._pos + n]).decode("utf-8", "strict")
        except UnicodeDecodeError as e:
            self._pos = start
            raise InvalidUTF8Error(f"String is not valid UTF-8: {e.reason}", offset=start) from e
        self._pos += n
        return s
