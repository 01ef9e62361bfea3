import math
import struct

import pytest

import gguf_writer as w
from gguf_info.model_formats.gguf.gguf import (
    GGUFLayout,
    GGUFValue,
    GGUFValueType,
    UnexpectedEOFError,
    UnsupportedValueTypeError,
)
from gguf_info.model_formats.gguf.gguf_cursor import GGUFCursor
from gguf_info.model_formats.gguf.gguf_values import decode_metadata_table, decode_value

V1 = GGUFLayout(count_width=4, dim_width=4)


def _decode(tag: int, body: bytes, layout: GGUFLayout = GGUFLayout()) -> GGUFValue:
    cur = GGUFCursor(struct.pack("<I", tag) + body)
    v = decode_value(cur, cur.read_u32(), layout)
    assert cur.remaining_len() == 0
    return v


@pytest.mark.parametrize(
    "vtype, py",
    [
        (GGUFValueType.UINT8, 200),
        (GGUFValueType.INT8, -100),
        (GGUFValueType.UINT16, 65535),
        (GGUFValueType.INT16, -32768),
        (GGUFValueType.UINT32, 4096),
        (GGUFValueType.INT32, -7),
        (GGUFValueType.UINT64, 2**63 + 1),
        (GGUFValueType.INT64, -(2**62)),
        (GGUFValueType.FLOAT64, 1e-300),
        (GGUFValueType.BOOL, True),
        (GGUFValueType.STRING, "llama"),
    ],
)
def test_scalars(vtype, py):
    v = _decode(vtype, w.scalar(vtype, py))
    assert v == GGUFValue(vtype, py)
    assert not v.is_array


def test_float32_value():
    v = _decode(GGUFValueType.FLOAT32, struct.pack("<f", 1e-5))
    assert v.type == GGUFValueType.FLOAT32
    assert math.isclose(v.value, 1e-5, rel_tol=1e-6)


def test_array_of_strings():
    arr = w.array(GGUFValueType.STRING, ["<unk>", "<s>", "</s>"])
    v = _decode(GGUFValueType.ARRAY, w.value(arr))
    assert v == arr
    assert v.element_type == GGUFValueType.STRING
    assert all(item.type == GGUFValueType.STRING for item in v.value)
    assert v.to_python() == ["<unk>", "<s>", "</s>"]


def test_empty_array():
    arr = w.array(GGUFValueType.INT32, [])
    assert _decode(GGUFValueType.ARRAY, w.value(arr)) == arr


def test_v1_array_uses_32bit_lengths():
    arr = w.array(GGUFValueType.STRING, ["a", "bc"])
    v = _decode(GGUFValueType.ARRAY, w.value(arr, width=4), V1)
    assert v == arr


def test_nested_array_rejected():
    body = struct.pack("<I", GGUFValueType.ARRAY) + struct.pack("<Q", 0)
    with pytest.raises(UnsupportedValueTypeError) as exc:
        _decode(GGUFValueType.ARRAY, body)
    assert exc.value.type_tag == GGUFValueType.ARRAY
    assert exc.value.offset == 4


@pytest.mark.parametrize("tag", [13, 255, 2**32 - 1])
def test_unknown_tag(tag):
    with pytest.raises(UnsupportedValueTypeError) as exc:
        _decode(tag, b"\0" * 8)
    assert exc.value.type_tag == tag
    assert exc.value.offset == 0


def test_unknown_array_element_tag():
    body = struct.pack("<I", 42) + struct.pack("<Q", 1) + b"\0"
    with pytest.raises(UnsupportedValueTypeError):
        _decode(GGUFValueType.ARRAY, body)


def test_truncated_array_is_eof():
    arr = w.array(GGUFValueType.UINT32, [1, 2, 3])
    body = w.value(arr)[:-2]
    cur = GGUFCursor(body)
    with pytest.raises(UnexpectedEOFError):
        decode_value(cur, GGUFValueType.ARRAY)


def test_metadata_table_preserves_order_and_duplicates():
    raw = (
        w.kv("b.key", w.u32(1))
        + w.kv("a.key", w.s("x"))
        + w.kv("b.key", w.u32(2))
    )
    cur = GGUFCursor(raw)
    entries = decode_metadata_table(cur, 3)
    assert [e.key for e in entries] == ["b.key", "a.key", "b.key"]
    assert [e.value.value for e in entries] == [1, "x", 2]
    assert entries[0].offset_start == 0
    assert entries[0].offset_end == entries[1].offset_start
    assert entries[-1].offset_end == len(raw)


def test_metadata_table_failure_propagates():
    raw = w.kv("ok", w.u32(1)) + w.string("bad") + struct.pack("<I", 99)
    with pytest.raises(UnsupportedValueTypeError):
        decode_metadata_table(GGUFCursor(raw), 2)


def test_metadata_table_zero_entries():
    assert decode_metadata_table(GGUFCursor(b""), 0) == ()


def test_preview_truncates_arrays():
    arr = w.array(GGUFValueType.INT32, range(10))
    assert arr.preview(max_items=2) == "[0, 1, ...] (n=10)"
    assert arr.type_name == "ARRAY[INT32]"
