# gguf_info/__init__.py
"""
gguf_info
=========

Pure-Python GGUF header decoder with zero-copy mmap reads, rich console
reporting and structural verification of the tensor layout.
"""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

__all__ = ["__version__"]

try:
    # Read version dynamically from installed package metadata
    __version__: str = _pkg_version("gguf-info")
except PackageNotFoundError:  # pragma: no cover - fallback for development environments
    __version__ = "0.0.0-dev"
