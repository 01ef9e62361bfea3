"""
Well-known GGUF metadata keys and the value types they are expected to carry.
"""

from __future__ import annotations

from typing import Any, Dict

from .gguf import GGUFValueType

# ``{arch}`` is substituted with the value of general.architecture.
KNOWN_KEYS: Dict[str, Dict[str, Any]] = {
    # General
    "general.architecture": {"type": GGUFValueType.STRING, "required": True},
    "general.alignment": {"type": GGUFValueType.UINT32, "default": 32},
    "general.quantization_version": {"type": GGUFValueType.UINT32},
    "general.file_type": {"type": GGUFValueType.UINT32},
    "general.name": {"type": GGUFValueType.STRING},
    "general.author": {"type": GGUFValueType.STRING},
    "general.url": {"type": GGUFValueType.STRING},
    "general.description": {"type": GGUFValueType.STRING},
    "general.license": {"type": GGUFValueType.STRING},
    "general.source.url": {"type": GGUFValueType.STRING},
    # Per-architecture hyperparameters
    "{arch}.context_length": {"type": GGUFValueType.UINT32},
    "{arch}.embedding_length": {"type": GGUFValueType.UINT32},
    "{arch}.block_count": {"type": GGUFValueType.UINT32},
    "{arch}.feed_forward_length": {"type": GGUFValueType.UINT32},
    "{arch}.attention.head_count": {"type": GGUFValueType.UINT32},
    "{arch}.attention.head_count_kv": {"type": GGUFValueType.UINT32},
    "{arch}.attention.layer_norm_rms_epsilon": {"type": GGUFValueType.FLOAT32},
    "{arch}.rope.dimension_count": {"type": GGUFValueType.UINT32},
    "{arch}.rope.freq_base": {"type": GGUFValueType.FLOAT32},
    "{arch}.expert_count": {"type": GGUFValueType.UINT32},
    "{arch}.expert_used_count": {"type": GGUFValueType.UINT32},
    # Tokenizer
    "tokenizer.ggml.model": {"type": GGUFValueType.STRING},
    "tokenizer.ggml.tokens": {"type": GGUFValueType.ARRAY, "element_type": GGUFValueType.STRING},
    "tokenizer.ggml.scores": {"type": GGUFValueType.ARRAY, "element_type": GGUFValueType.FLOAT32},
    "tokenizer.ggml.token_type": {"type": GGUFValueType.ARRAY, "element_type": GGUFValueType.INT32},
    "tokenizer.ggml.merges": {"type": GGUFValueType.ARRAY, "element_type": GGUFValueType.STRING},
    "tokenizer.ggml.bos_token_id": {"type": GGUFValueType.UINT32},
    "tokenizer.ggml.eos_token_id": {"type": GGUFValueType.UINT32},
    "tokenizer.chat_template": {"type": GGUFValueType.STRING},
}


def expand_known_keys(architecture: str | None) -> Dict[str, Dict[str, Any]]:
    """Return KNOWN_KEYS with ``{arch}`` filled in.

    Architecture-specific rules are dropped when the architecture is unknown.
    """
    out: Dict[str, Dict[str, Any]] = {}
    for key, rule in KNOWN_KEYS.items():
        if "{arch}" in key:
            if not architecture:
                continue
            key = key.format(arch=architecture)
        out[key] = rule
    return out
