# gguf_info/model_formats/gguf/gguf_tensors.py
"""
Tensor-info table decoding.
"""

from __future__ import annotations

from typing import List, Tuple

from .gguf import GGUFLayout, GGUFTensorInfo, UnsupportedTensorTypeError
from .gguf_cursor import GGUFCursor
from .gguf_quantization import GGMLType


def _parse_tensor_info(cur: GGUFCursor, layout: GGUFLayout) -> GGUFTensorInfo:
    name = cur.read_string(layout.count_width)
    n_dims = cur.read_u32()
    dims: list[int] = []
    for _ in range(n_dims):
        dims.append(cur.read_uint(layout.dim_width))
    type_offset = cur.position
    raw_type = cur.read_u32()
    try:
        ggml_type = GGMLType(raw_type)
    except ValueError:
        raise UnsupportedTensorTypeError(
            f"Unknown GGML tensor type {raw_type} for tensor {name!r}",
            type_tag=raw_type,
            offset=type_offset,
        ) from None
    rel_off = cur.read_u64()  # offset relative to data section
    return GGUFTensorInfo(name=name, dims=tuple(dims), ggml_type=ggml_type, offset=rel_off)


def decode_tensor_infos(
    cur: GGUFCursor, count: int, layout: GGUFLayout = GGUFLayout()
) -> Tuple[GGUFTensorInfo, ...]:
    """Decode ``count`` tensor descriptors in stream order.

    Only the descriptors are read; tensor payload bytes are never touched.
    """
    tensors: List[GGUFTensorInfo] = []
    for _ in range(count):
        tensors.append(_parse_tensor_info(cur, layout))
    return tuple(tensors)
