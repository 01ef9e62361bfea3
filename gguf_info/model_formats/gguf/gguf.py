# gguf_info/model_formats/gguf/gguf.py
"""
GGUF shared structures and exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from gguf_info.model_formats.gguf.gguf_quantization import QUANTIZATION_MAP, GGMLType

GGUF_MAGIC = b"GGUF"
GGUF_DEFAULT_ALIGNMENT = 32


@dataclass(frozen=True)
class GGUFLayout:
    """Field widths that changed across GGUF versions.

    Attributes:
        count_width: Bytes used for tensor/KV counts, string lengths and array lengths.
        dim_width: Bytes used for each tensor dimension extent.
    """

    count_width: int = 8
    dim_width: int = 8


class GGUFValueType(IntEnum):
    """Metadata value type tags."""

    UINT8 = 0
    INT8 = 1
    UINT16 = 2
    INT16 = 3
    UINT32 = 4
    INT32 = 5
    FLOAT32 = 6
    BOOL = 7
    STRING = 8
    ARRAY = 9
    UINT64 = 10
    INT64 = 11
    FLOAT64 = 12


@dataclass(frozen=True)
class GGUFValue:
    """A typed metadata value.

    Scalars carry a Python ``int``/``float``/``bool``/``str`` in ``value``.
    Arrays carry a tuple of ``GGUFValue`` in ``value`` and the scalar element
    tag in ``element_type``.
    """

    type: GGUFValueType
    value: Any
    element_type: Optional[GGUFValueType] = None

    @property
    def is_array(self) -> bool:
        return self.type == GGUFValueType.ARRAY

    def to_python(self) -> Any:
        """Unwrap to plain Python values (lists for arrays)."""
        if self.is_array:
            return [v.to_python() for v in self.value]
        return self.value

    @property
    def type_name(self) -> str:
        if self.is_array:
            return f"ARRAY[{self.element_type.name}]"
        return self.type.name

    def preview(self, max_items: int = 3, max_len: int = 70) -> str:
        """Short human-readable rendering; arrays show their first items."""
        if self.is_array:
            count = len(self.value)
            shown = ", ".join(v.preview(max_items, max_len) for v in self.value[:max_items])
            s = f"[{shown}{', ...' if count > max_items else ''}] (n={count})"
        elif self.type == GGUFValueType.FLOAT32:
            s = f"{self.value:.6g}"
        elif self.type == GGUFValueType.STRING:
            s = repr(self.value)
        else:
            s = str(self.value)
        # Truncate long strings to keep tables clean
        if len(s) > max_len:
            s = s[: max_len - 3] + "..."
        return s


@dataclass(frozen=True)
class GGUFMetadataEntry:
    key: str
    value: GGUFValue
    offset_start: int = 0
    offset_end: int = 0


@dataclass(frozen=True)
class GGUFTensorInfo:
    name: str
    dims: Tuple[int, ...]
    ggml_type: GGMLType
    offset: int  # relative to data section

    @property
    def n_dims(self) -> int:
        return len(self.dims)

    @property
    def n_elements(self) -> int:
        """Total number of elements in the tensor."""
        if not self.dims:
            return 0
        p = 1
        for d in self.dims:
            p *= d
        return p

    @property
    def n_bytes(self) -> int:
        """On-disk size implied by the storage type, or -1 if not computable."""
        info = QUANTIZATION_MAP.get(self.ggml_type)
        return info.get_expected_size(self.n_elements) if info else -1


@dataclass(frozen=True)
class GGUFHeader:
    version: int
    tensor_count: int
    metadata: Tuple[GGUFMetadataEntry, ...]
    tensors: Tuple[GGUFTensorInfo, ...]
    alignment: int
    data_offset: int  # absolute offset of data section
    header_end_offset: int = 0
    kv_end_offset: int = 0
    tensor_info_end_offset: int = 0

    @property
    def metadata_count(self) -> int:
        return len(self.metadata)

    @property
    def kv(self) -> Dict[str, GGUFValue]:
        """Key -> value view; duplicate keys resolve last-seen-wins."""
        return {e.key: e.value for e in self.metadata}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the unwrapped value for ``key`` or ``default``."""
        v = self.kv.get(key)
        return v.to_python() if v is not None else default

    @property
    def architecture(self) -> Optional[str]:
        return self.get("general.architecture")

    @property
    def name(self) -> Optional[str]:
        return self.get("general.name")


class GGUFParseError(Exception):
    """Raised when a GGUF file is malformed.

    Attributes:
        offset: Byte offset at which decoding failed, when known.
    """

    def __init__(self, message: str, *, offset: Optional[int] = None):
        self.message = message
        self.offset = offset
        super().__init__(message if offset is None else f"{message} (at offset {offset})")


class UnexpectedEOFError(GGUFParseError):
    """The source ended before a required field."""


class InvalidUTF8Error(GGUFParseError):
    """String bytes are not valid UTF-8."""


class BadMagicError(GGUFParseError):
    """The file does not start with the GGUF signature."""


class UnsupportedVersionError(GGUFParseError):
    """The header declares a version this decoder does not understand."""

    def __init__(self, message: str, *, version: int, offset: Optional[int] = None):
        self.version = version
        super().__init__(message, offset=offset)


class UnsupportedValueTypeError(GGUFParseError):
    """Unknown metadata value type tag, or a nested array."""

    def __init__(self, message: str, *, type_tag: int, offset: Optional[int] = None):
        self.type_tag = type_tag
        super().__init__(message, offset=offset)


class UnsupportedTensorTypeError(GGUFParseError):
    """Unknown tensor storage type tag."""

    def __init__(self, message: str, *, type_tag: int, offset: Optional[int] = None):
        self.type_tag = type_tag
        super().__init__(message, offset=offset)
