# gguf_info/logging.py
"""
Logging setup using Loguru.

- Debug toggle (decoder stages, region offsets, timings)
- Trace toggle (one line per metadata record)
- Human-readable stderr formatting
"""
from __future__ import annotations

import sys

from loguru import logger


def configure_logging(*, debug: bool = False, trace: bool = False, sink=sys.stderr) -> int:
    """Configure loguru logging sinks.

    Args:
        debug: Enable verbose debug logging.
        trace: Also log every decoded key/value record.
        sink: Destination for log records.

    Returns:
        The loguru handler id.
    """
    logger.remove()
    level = "TRACE" if trace else "DEBUG" if debug else "INFO"
    verbose = debug or trace
    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
        "| <level>{level: <8}</level> "
        "| pid={process} tid={thread} "
        "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> "
        "- <level>{message}</level>"
    )
    return logger.add(
        sink, level=level, format=fmt, enqueue=True, backtrace=verbose, diagnose=verbose
    )
