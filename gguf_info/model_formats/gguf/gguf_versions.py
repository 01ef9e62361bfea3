# gguf_info/model_formats/gguf/gguf_versions.py
"""
Version-aware GGUF header decoding (v1/v2/v3).

Decoding is one linear pass: magic, version, counts, key/value table,
tensor-info table, then alignment of the data section start. Any failure
aborts the pass with a ``GGUFParseError`` subclass.
"""

from __future__ import annotations

import struct
from typing import Dict

from loguru import logger

from gguf_info.io.file_reader import LocalFileSource

from .gguf import (
    GGUF_DEFAULT_ALIGNMENT,
    GGUF_MAGIC,
    BadMagicError,
    GGUFHeader,
    GGUFLayout,
    GGUFMetadataEntry,
    GGUFValueType,
    UnexpectedEOFError,
    UnsupportedVersionError,
)
from .gguf_cursor import Buffer, GGUFCursor
from .gguf_tensors import decode_tensor_infos
from .gguf_values import decode_metadata_table

ALIGNMENT_KEY = "general.alignment"

# v1 stored counts, lengths and dimensions as 32-bit; v2 widened them to 64-bit.
# v3 only added big-endian files, which keep the v2 layout.
LAYOUTS: Dict[int, GGUFLayout] = {
    1: GGUFLayout(count_width=4, dim_width=4),
    2: GGUFLayout(count_width=8, dim_width=8),
    3: GGUFLayout(count_width=8, dim_width=8),
}

_ALIGNMENT_TYPES = (
    GGUFValueType.UINT8,
    GGUFValueType.UINT16,
    GGUFValueType.UINT32,
    GGUFValueType.UINT64,
)


def align_up(x: int, a: int) -> int:
    """Round ``x`` up to the next multiple of ``a``."""
    return -(-x // a) * a


def _check_magic(cur: GGUFCursor) -> None:
    n = min(len(GGUF_MAGIC), cur.remaining_len())
    head = cur.read_bytes(n)
    if head != GGUF_MAGIC[:n]:
        raise BadMagicError(f"Invalid magic {head!r}; not GGUF", offset=0)
    if n < len(GGUF_MAGIC):
        raise UnexpectedEOFError("File too small for GGUF magic", offset=n)


def _check_version(cur: GGUFCursor) -> tuple[int, GGUFLayout]:
    offset = cur.position
    version = cur.read_u32()
    layout = LAYOUTS.get(version)
    if layout is not None:
        logger.debug("GGUF version {v}", v=version)
        return version, layout
    supported = ", ".join(str(v) for v in LAYOUTS)
    msg = f"Unsupported GGUF version {version}; supported: {supported}"
    swapped = struct.unpack("<I", struct.pack(">I", version))[0]
    if swapped in LAYOUTS:
        msg += f" (looks like big-endian v{swapped}, only little-endian files are read)"
    raise UnsupportedVersionError(msg, version=version, offset=offset)


def resolve_alignment(
    metadata: tuple[GGUFMetadataEntry, ...], default: int = GGUF_DEFAULT_ALIGNMENT
) -> int:
    """Return the declared alignment, or ``default`` if missing or malformed.

    The last ``general.alignment`` record wins. Only a positive unsigned
    integer scalar is honoured.
    """
    entry = None
    for e in metadata:
        if e.key == ALIGNMENT_KEY:
            entry = e
    if entry is None:
        return default
    v = entry.value
    if v.type not in _ALIGNMENT_TYPES or v.value <= 0:
        logger.warning(
            "Ignoring malformed {key} ({type}={value}); using default {default}",
            key=ALIGNMENT_KEY,
            type=v.type.name,
            value=v.value if not v.is_array else "[...]",
            default=default,
        )
        return default
    return int(v.value)


def parse_gguf_header(
    buf: Buffer, *, default_alignment: int = GGUF_DEFAULT_ALIGNMENT
) -> GGUFHeader:
    """Decode the GGUF header from ``buf`` without reading tensor data.

    Args:
        buf: Bytes, bytearray or memoryview holding at least the header.
        default_alignment: Alignment used when the file declares none.

    Raises:
        GGUFParseError: one of its subclasses, naming the failure and offset.
    """
    if default_alignment <= 0:
        raise ValueError("default_alignment must be positive")

    cur = GGUFCursor(buf)
    try:
        _check_magic(cur)
        version, layout = _check_version(cur)
        n_tensors = cur.read_uint(layout.count_width)
        n_kv = cur.read_uint(layout.count_width)
        header_end = cur.position
        logger.debug("GGUF header: tensors={t} kv={k}", t=n_tensors, k=n_kv)

        metadata = decode_metadata_table(cur, n_kv, layout)
        kv_end = cur.position
        tensors = decode_tensor_infos(cur, n_tensors, layout)
        tensor_info_end = cur.position
    finally:
        cur.release()

    alignment = resolve_alignment(metadata, default_alignment)
    data_offset = align_up(tensor_info_end, alignment)
    logger.debug(
        "KV store [{h}, {k}), tensor info [{k}, {t}), alignment={a}, data at {d}",
        h=header_end,
        k=kv_end,
        t=tensor_info_end,
        a=alignment,
        d=data_offset,
    )
    return GGUFHeader(
        version=version,
        tensor_count=n_tensors,
        metadata=metadata,
        tensors=tensors,
        alignment=alignment,
        data_offset=data_offset,
        header_end_offset=header_end,
        kv_end_offset=kv_end,
        tensor_info_end_offset=tensor_info_end,
    )


def read_gguf_header(path: str, **kwargs) -> GGUFHeader:
    """Memory-map ``path`` and decode its GGUF header."""
    with LocalFileSource(path).open() as mf:
        return parse_gguf_header(mf.view, **kwargs)
