# gguf_info/analysis/analyzer.py
"""
Base Analyzer class to handle common file operations.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from loguru import logger

from gguf_info.analysis.base import AnalysisReport
from gguf_info.io.file_reader import LocalFileSource
from gguf_info.observability import Timer


class Analyzer(ABC):
    """Abstract base class for file format analyzers."""

    stages: List[str] = []

    def __init__(self, path: str):
        self.path = path
        self.src = LocalFileSource(path)

    def run(self, stages: List[str] | None = None) -> AnalysisReport:
        """
        Orchestrates the analysis process, running only the specified stages.

        Args:
            stages: Stages to run, in the analyzer's own order. Defaults to all.
        """
        selected = [s for s in self.stages if stages is None or s in stages]
        unknown = sorted(set(stages or []) - set(self.stages))
        if unknown:
            raise ValueError(f"Unknown stages: {', '.join(unknown)}")

        with self.src.open() as mf:
            report = AnalysisReport(
                file_path=self.path,
                file_size=mf.size,
                format=self.get_format_name(),
                metadata={},
            )
            with Timer("analysis") as t_core:
                # Delegate to the concrete implementation for the core analysis
                self._perform_analysis(mf.view, report, selected)

        logger.debug(
            "{format} analysis ({stages}) completed in {ms:.2f}ms",
            format=self.get_format_name().upper(),
            stages=", ".join(report.stages_run),
            ms=t_core.duration_ms,
        )
        return report

    @abstractmethod
    def _perform_analysis(self, mv: memoryview, report: AnalysisReport, stages: List[str]) -> None:
        """
        Format-specific analysis logic to be implemented by subclasses.
        This method should populate the given report object.
        """
        raise NotImplementedError

    @abstractmethod
    def get_format_name(self) -> str:
        """Return the string name of the format (e.g., 'gguf')."""
        raise NotImplementedError
