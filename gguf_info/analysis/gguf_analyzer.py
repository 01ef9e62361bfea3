# gguf_info/analysis/gguf_analyzer.py
"""
GGUF analyzer: structural verification of a decoded header + reason matrix.
"""

from __future__ import annotations

from collections import Counter
from typing import List, Tuple

from loguru import logger

from gguf_info.analysis.analyzer import Analyzer
from gguf_info.analysis.base import AnalysisReport
from gguf_info.model_formats.gguf.gguf import (
    GGUFHeader,
    GGUFParseError,
    GGUFValueType,
    UnsupportedVersionError,
)
from gguf_info.model_formats.gguf.gguf_rules import expand_known_keys
from gguf_info.model_formats.gguf.gguf_versions import parse_gguf_header

STAGES: List[str] = ["structure", "layout", "keys"]


class GGUFAnalyzer(Analyzer):
    """Analyzer implementation for GGUF files."""

    stages = STAGES

    def __init__(self, path: str, *, default_alignment: int = 32):
        super().__init__(path)
        self.default_alignment = default_alignment

    def get_format_name(self) -> str:
        return "gguf"

    def _perform_analysis(self, mv: memoryview, report: AnalysisReport, stages: List[str]) -> None:
        """Decode the header once, then run each selected stage over it."""
        try:
            header = parse_gguf_header(mv, default_alignment=self.default_alignment)
        except GGUFParseError as e:
            target = f"gguf v{e.version}" if isinstance(e, UnsupportedVersionError) else "gguf"
            logger.debug("GGUF decode failed: {err}", err=e)
            report.add("parse", False, f"{type(e).__name__}: {e}")
            report.add_reason(target, e.message, error=type(e).__name__, offset=e.offset)
            return

        report.add("parse", True, f"GGUF v{header.version}")
        report.metadata.update(
            {
                "version": header.version,
                "architecture": header.architecture,
                "name": header.name,
                "alignment": header.alignment,
                "n_kv": header.metadata_count,
                "n_tensors": header.tensor_count,
                "data_offset": header.data_offset,
            }
        )

        if "structure" in stages:
            self._check_structure(header, report)
        if "layout" in stages:
            self._check_layout(header, report)
        if "keys" in stages:
            self._check_keys(header, report)
        report.stages_run.extend(stages)

    def _check_structure(self, h: GGUFHeader, report: AnalysisReport) -> None:
        file_size = report.file_size
        report.add("model_metadata:Version", True, f"v{h.version}")
        report.add("model_metadata:Alignment", True, str(h.alignment))
        report.add("model_metadata:KV_Count", True, str(h.metadata_count))
        report.add("model_metadata:Tensor_Count", True, str(h.tensor_count))
        report.add("model_metadata:Data_Offset", True, str(h.data_offset))

        report.add("structural_integrity:magic_version", True, f"GGUF v{h.version}")
        report.add("structural_integrity:Magic_Bytes", True, "Region: [0, 8)")
        report.add(
            "structural_integrity:GGUF_Header", True, f"Region: [8, {h.header_end_offset})"
        )
        report.add(
            "structural_integrity:KV_Store",
            True,
            f"Region: [{h.header_end_offset}, {h.kv_end_offset}) (Count: {h.metadata_count})",
        )
        report.add(
            "structural_integrity:Tensor_Info",
            True,
            f"Region: [{h.kv_end_offset}, {h.tensor_info_end_offset}) (Count: {h.tensor_count})",
        )
        ok_align = (h.alignment & (h.alignment - 1)) == 0
        report.add(
            "structural_integrity:alignment_power_of_two", ok_align, f"alignment={h.alignment}"
        )
        report.add(
            "structural_integrity:data_offset_bounds",
            h.data_offset <= file_size,
            f"Region: [{h.data_offset}, {file_size})",
        )

    def _check_layout(self, h: GGUFHeader, report: AnalysisReport) -> None:
        file_size = report.file_size
        tensors = h.tensors

        # Declaration order, as the format lays tensors out.
        report.add(
            "structural_integrity:tensor_offsets_sorted",
            all(tensors[i].offset <= tensors[i + 1].offset for i in range(len(tensors) - 1)),
            "non-decreasing offsets in declaration order",
        )
        misaligned = [t.name for t in tensors if t.offset % h.alignment]
        report.add(
            "structural_integrity:tensor_offsets_aligned",
            not misaligned,
            f"misaligned: {', '.join(misaligned)}" if misaligned else f"all multiples of {h.alignment}",
        )

        order = sorted(tensors, key=lambda t: t.offset)
        bounds: List[Tuple[str, int, int]] = []
        for i, ti in enumerate(order):
            start = h.data_offset + ti.offset
            next_start = (h.data_offset + order[i + 1].offset) if i + 1 < len(order) else file_size
            expected = ti.n_bytes
            end = start + expected if expected >= 0 else next_start
            bounds.append((ti.name, start, end))

            in_file = start <= end <= file_size
            room = next_start - start
            size_ok = 0 <= expected <= room
            report.add(
                f"tensor_layout:{ti.name}",
                ok=(in_file and size_ok),
                details="",
                **{
                    "start": start,
                    "end": end,
                    "on_disk": room,
                    "expected": expected if expected >= 0 else "N/A",
                    "type": ti.ggml_type.name,
                    "dims": str(list(ti.dims)),
                },
            )

        non_overlap = all(bounds[i][2] <= bounds[i + 1][1] for i in range(len(bounds) - 1))
        report.add(
            "structural_integrity:tensor_non_overlap",
            non_overlap,
            "no overlapping tensor data regions",
        )

        last_end = max((b[2] for b in bounds), default=h.data_offset)
        report.add(
            "structural_integrity:file_address_space_boundary",
            last_end <= file_size,
            f"Last data address {last_end} vs file size {file_size}",
        )

        mix = Counter(t.ggml_type.name for t in tensors)
        if mix:
            profile = ", ".join(f"{qt}: {n}" for qt, n in sorted(mix.items()))
            report.add("structural_integrity:quantization_profile", True, profile)
            report.metadata["profile"] = dict(sorted(mix.items()))

    def _check_keys(self, h: GGUFHeader, report: AnalysisReport) -> None:
        rules = expand_known_keys(h.architecture)

        for e in h.metadata:
            v = e.value
            rule = rules.get(e.key)
            ok, details = True, ""
            if rule is not None:
                want = rule["type"]
                want_elem = rule.get("element_type")
                ok = v.type == want and (want_elem is None or v.element_type == want_elem)
                if not ok:
                    expected = f"ARRAY[{want_elem.name}]" if want_elem else want.name
                    details = f"expected {expected}"
            report.add(
                f"kv_store:{e.key}",
                ok,
                details,
                key=e.key,
                type=v.type_name,
                value=v.preview(),
                start=e.offset_start,
                end=e.offset_end,
                size=e.offset_end - e.offset_start,
            )

        present = {e.key for e in h.metadata}
        for key, rule in rules.items():
            if rule.get("required") and key not in present:
                report.add(
                    f"kv_store:{key}",
                    False,
                    "required key missing",
                    key=key,
                    type=GGUFValueType(rule["type"]).name,
                    value="<missing>",
                )

        dups = sorted(k for k, n in Counter(e.key for e in h.metadata).items() if n > 1)
        report.add(
            "structural_integrity:unique_keys",
            not dups,
            f"duplicate keys: {', '.join(dups)}" if dups else "all metadata keys unique",
        )
