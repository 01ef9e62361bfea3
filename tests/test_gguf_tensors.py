import struct

import pytest

import gguf_writer as w
from gguf_info.model_formats.gguf.gguf import (
    GGUFLayout,
    GGUFTensorInfo,
    UnexpectedEOFError,
    UnsupportedTensorTypeError,
)
from gguf_info.model_formats.gguf.gguf_cursor import GGUFCursor
from gguf_info.model_formats.gguf.gguf_quantization import QUANTIZATION_MAP, GGMLType
from gguf_info.model_formats.gguf.gguf_tensors import decode_tensor_infos


def test_decodes_descriptors_in_order():
    infos = [
        GGUFTensorInfo("blk.0.attn_q.weight", (4096, 4096), GGMLType.Q4_K, 0),
        GGUFTensorInfo("output_norm.weight", (4096,), GGMLType.F32, 9437184),
    ]
    raw = b"".join(w.tensor_info(t) for t in infos)
    cur = GGUFCursor(raw)
    assert decode_tensor_infos(cur, 2) == tuple(infos)
    assert cur.position == len(raw)


def test_v1_uses_32bit_dims():
    t = GGUFTensorInfo("x", (3, 5), GGMLType.F16, 64)
    raw = w.tensor_info(t, width=4, dim_width=4)
    decoded = decode_tensor_infos(GGUFCursor(raw), 1, GGUFLayout(count_width=4, dim_width=4))
    assert decoded == (t,)


def test_scalar_tensor_has_no_dims():
    t = GGUFTensorInfo("scale", (), GGMLType.F32, 0)
    (decoded,) = decode_tensor_infos(GGUFCursor(w.tensor_info(t)), 1)
    assert decoded.dims == ()
    assert decoded.n_dims == 0
    assert decoded.n_elements == 0


@pytest.mark.parametrize("raw_type", [4, 5, 31, 36, 40, 1000])
def test_unknown_tensor_type(raw_type):
    raw = w.string("bad") + struct.pack("<I", 1) + struct.pack("<Q", 8)
    type_offset = len(raw)
    raw += struct.pack("<I", raw_type) + struct.pack("<Q", 0)
    with pytest.raises(UnsupportedTensorTypeError) as exc:
        decode_tensor_infos(GGUFCursor(raw), 1)
    assert exc.value.type_tag == raw_type
    assert exc.value.offset == type_offset
    assert "bad" in str(exc.value)


def test_declared_count_larger_than_data_is_eof():
    raw = w.tensor_info(GGUFTensorInfo("a", (1,), GGMLType.F32, 0))
    with pytest.raises(UnexpectedEOFError):
        decode_tensor_infos(GGUFCursor(raw), 2)


@pytest.mark.parametrize(
    "ggml_type, dims, expected",
    [
        (GGMLType.F32, (32, 4), 512),
        (GGMLType.F16, (10,), 20),
        (GGMLType.Q4_0, (64,), 36),
        (GGMLType.Q8_0, (64,), 68),
        (GGMLType.Q4_K, (256, 2), 288),
        (GGMLType.Q6_K, (256,), 210),
        (GGMLType.Q8_0, (33,), -1),
    ],
)
def test_tensor_byte_size(ggml_type, dims, expected):
    assert GGUFTensorInfo("t", dims, ggml_type, 0).n_bytes == expected


def test_every_type_has_a_block_layout():
    assert set(QUANTIZATION_MAP) == set(GGMLType)
