# gguf_info/reporting/json_reporter.py
"""
JSON reporting utilities.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from gguf_info.model_formats.gguf.gguf import GGUFHeader
from gguf_info.observability import to_dict


def header_to_json_dict(header: GGUFHeader) -> Dict[str, Any]:
    """Convert a decoded header to a JSON-serializable dict.

    Metadata values are unwrapped to plain Python values; entries stay in
    stream order so duplicate keys survive.
    """
    return {
        "version": header.version,
        "tensor_count": header.tensor_count,
        "metadata_count": header.metadata_count,
        "alignment": header.alignment,
        "data_offset": header.data_offset,
        "metadata": [
            {"key": e.key, "type": e.value.type_name, "value": e.value.to_python()}
            for e in header.metadata
        ],
        "tensors": [
            {
                "name": t.name,
                "dims": list(t.dims),
                "type": t.ggml_type.name,
                "offset": t.offset,
                "n_bytes": t.n_bytes,
            }
            for t in header.tensors
        ],
    }


def to_json_dict(obj) -> Dict[str, Any]:
    """Convert a GGUFHeader or AnalysisReport to a JSON-serializable dict."""
    if isinstance(obj, GGUFHeader):
        return header_to_json_dict(obj)
    return to_dict(obj)


def write_json(obj, path: str) -> None:
    """Write a header or report to a file as pretty JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(to_json_dict(obj), f, indent=2, ensure_ascii=False)
