# gguf_info/model_formats/gguf/gguf_values.py
"""
Metadata value and key/value table decoding.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from loguru import logger

from .gguf import (
    GGUFLayout,
    GGUFMetadataEntry,
    GGUFValue,
    GGUFValueType,
    UnsupportedValueTypeError,
)
from .gguf_cursor import GGUFCursor

_SCALAR_READERS: Dict[GGUFValueType, Callable[[GGUFCursor], object]] = {
    GGUFValueType.UINT8: GGUFCursor.read_u8,
    GGUFValueType.INT8: GGUFCursor.read_i8,
    GGUFValueType.UINT16: GGUFCursor.read_u16,
    GGUFValueType.INT16: GGUFCursor.read_i16,
    GGUFValueType.UINT32: GGUFCursor.read_u32,
    GGUFValueType.INT32: GGUFCursor.read_i32,
    GGUFValueType.FLOAT32: GGUFCursor.read_f32,
    GGUFValueType.BOOL: GGUFCursor.read_bool,
    GGUFValueType.UINT64: GGUFCursor.read_u64,
    GGUFValueType.INT64: GGUFCursor.read_i64,
    GGUFValueType.FLOAT64: GGUFCursor.read_f64,
}


def _value_type(tag: int, offset: int) -> GGUFValueType:
    try:
        return GGUFValueType(tag)
    except ValueError:
        raise UnsupportedValueTypeError(
            f"Unknown GGUF value type {tag}", type_tag=tag, offset=offset
        ) from None


def _read_scalar(cur: GGUFCursor, vtype: GGUFValueType, layout: GGUFLayout) -> GGUFValue:
    if vtype == GGUFValueType.STRING:
        return GGUFValue(vtype, cur.read_string(layout.count_width))
    return GGUFValue(vtype, _SCALAR_READERS[vtype](cur))


def decode_value(cur: GGUFCursor, type_tag: int, layout: GGUFLayout = GGUFLayout()) -> GGUFValue:
    """Decode one value whose tag has just been read from ``cur``.

    Args:
        cur: Cursor positioned at the first byte of the value.
        type_tag: Raw value type tag.
        layout: Version-dependent field widths.

    Raises:
        UnsupportedValueTypeError: unknown tag, or an array of arrays.
        UnexpectedEOFError: the value runs past the end of the buffer.
        InvalidUTF8Error: a string is not valid UTF-8.
    """
    # The tag sits immediately before the value.
    vtype = _value_type(type_tag, max(cur.position - 4, 0))
    if vtype != GGUFValueType.ARRAY:
        return _read_scalar(cur, vtype, layout)

    tag_offset = cur.position
    elem_type = _value_type(cur.read_u32(), tag_offset)
    if elem_type == GGUFValueType.ARRAY:
        raise UnsupportedValueTypeError(
            "Nested arrays are not supported", type_tag=int(elem_type), offset=tag_offset
        )
    count = cur.read_uint(layout.count_width)
    items: List[GGUFValue] = []
    for _ in range(count):
        items.append(_read_scalar(cur, elem_type, layout))
    return GGUFValue(vtype, tuple(items), element_type=elem_type)


def decode_metadata_table(
    cur: GGUFCursor, count: int, layout: GGUFLayout = GGUFLayout()
) -> Tuple[GGUFMetadataEntry, ...]:
    """Decode ``count`` key/value records in stream order."""
    entries: List[GGUFMetadataEntry] = []
    for _ in range(count):
        start = cur.position
        key = cur.read_string(layout.count_width)
        value = decode_value(cur, cur.read_u32(), layout)
        entries.append(GGUFMetadataEntry(key, value, offset_start=start, offset_end=cur.position))
        logger.trace(
            "kv {key} type={type} [{start}, {end})",
            key=key,
            type=value.type.name,
            start=start,
            end=cur.position,
        )
    return tuple(entries)
