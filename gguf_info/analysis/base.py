# gguf_info/analysis/base.py
"""
Verification report models and “reason matrix” support.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Finding:
    """Single check result."""

    name: str  # "<group>:<check>"
    ok: bool
    details: str = ""
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ReasonEntry:
    """Explains why the header failed to decode."""

    target: str  # e.g., "gguf v3", "gguf"
    reason: str
    error: str = ""  # exception class name, e.g. "UnexpectedEOFError"
    offset: Optional[int] = None


@dataclass
class AnalysisReport:
    """Aggregate verification report with a reason matrix."""

    file_path: str
    file_size: int
    format: str
    metadata: Dict[str, Any]
    findings: List[Finding] = field(default_factory=list)
    reason_matrix: List[ReasonEntry] = field(default_factory=list)
    stages_run: List[str] = field(default_factory=list)

    def add(self, name: str, ok: bool, details: str = "", **context: Any) -> None:
        self.findings.append(Finding(name=name, ok=ok, details=details, context=context))

    def add_reason(
        self, target: str, reason: str, *, error: str = "", offset: Optional[int] = None
    ) -> None:
        self.reason_matrix.append(
            ReasonEntry(target=target, reason=reason, error=error, offset=offset)
        )

    def group(self, prefix: str) -> List[Finding]:
        return [f for f in self.findings if f.name.split(":", 1)[0] == prefix]

    @property
    def ok(self) -> bool:
        return all(f.ok for f in self.findings) if self.findings else True
