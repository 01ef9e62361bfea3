from __future__ import annotations

import pytest
from loguru import logger

import gguf_writer as w
from gguf_info.model_formats.gguf.gguf import GGUFTensorInfo, GGUFValueType
from gguf_info.model_formats.gguf.gguf_quantization import GGMLType


@pytest.fixture
def caplog_loguru():
    """Collect loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{level}|{message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def small_model():
    """Metadata and tensors of a tiny, well-formed llama-style model."""
    metadata = [
        ("general.architecture", w.s("llama")),
        ("general.name", w.s("tiny")),
        ("general.alignment", w.u32(32)),
        ("llama.context_length", w.u32(128)),
        ("tokenizer.ggml.tokens", w.array(GGUFValueType.STRING, ["<s>", "</s>", "hi"])),
    ]
    tensors = [
        GGUFTensorInfo("token_embd.weight", (32, 4), GGMLType.F32, 0),
        GGUFTensorInfo("output.weight", (64,), GGMLType.Q8_0, 512),
    ]
    # F32 32x4 = 512 bytes; Q8_0 64 elements = 2 blocks * 34 = 68 bytes
    data = b"\0" * (512 + 68)
    return metadata, tensors, data


@pytest.fixture
def write_gguf(tmp_path):
    """Write raw bytes to a .gguf file and return its path."""

    def _write(raw: bytes, name: str = "model.gguf") -> str:
        p = tmp_path / name
        p.write_bytes(raw)
        return str(p)

    return _write
