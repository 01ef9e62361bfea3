# gguf_info/reporting/gguf_reporter.py
"""
GGUF-specific console reporting functions.
"""
from __future__ import annotations

from collections import defaultdict
from typing import List

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from gguf_info.analysis.base import AnalysisReport, Finding
from gguf_info.model_formats.gguf.gguf import GGUFHeader, GGUFParseError

console = Console()

PASS = "[green]PASS[/green]"
FAIL = "[bold red]FAIL[/bold red]"


def _status(ok: bool) -> str:
    return PASS if ok else FAIL


def render_header(header: GGUFHeader, *, path: str = "", max_array_items: int = 3) -> None:
    """Render a decoded header: summary, metadata table, tensor table."""
    t = Table(title="GGUF Header", box=box.SIMPLE_HEAVY)
    t.add_column("Field", style="bold")
    t.add_column("Value")
    if path:
        t.add_row("Path", escape(path))
    t.add_row("Version", str(header.version))
    t.add_row("Architecture", escape(str(header.architecture or "N/A")))
    t.add_row("Name", escape(str(header.name or "N/A")))
    t.add_row("Metadata entries", str(header.metadata_count))
    t.add_row("Tensors", str(header.tensor_count))
    t.add_row("Alignment", str(header.alignment))
    t.add_row("Data offset", str(header.data_offset))
    console.print(t)

    kv = Table(title="Metadata", box=box.ROUNDED, title_style="bold magenta")
    kv.add_column("Index", justify="right", style="dim")
    kv.add_column("Key", style="cyan", no_wrap=True)
    kv.add_column("Type", style="yellow")
    kv.add_column("Value", style="white")
    for index, e in enumerate(header.metadata, start=1):
        kv.add_row(
            str(index), escape(e.key), e.value.type_name, escape(e.value.preview(max_array_items))
        )
    console.print(kv)

    if not header.tensors:
        return
    tt = Table(title="Tensors", box=box.ROUNDED, title_style="bold magenta")
    tt.add_column("Index", justify="right", style="dim")
    tt.add_column("Tensor Name", style="cyan", no_wrap=True)
    tt.add_column("GGML Type", style="yellow")
    tt.add_column("Dimensions", style="green")
    tt.add_column("Offset", justify="right")
    tt.add_column("Size (bytes)", justify="right")
    for index, ti in enumerate(header.tensors, start=1):
        tt.add_row(
            str(index),
            escape(ti.name),
            ti.ggml_type.name,
            str(list(ti.dims)),
            str(ti.offset),
            str(ti.n_bytes) if ti.n_bytes >= 0 else "N/A",
        )
    console.print(tt)


def render_parse_error(err: GGUFParseError, *, path: str = "") -> None:
    """Show which kind of failure occurred and where."""
    where = f"offset {err.offset}" if err.offset is not None else "unknown offset"
    console.print(
        Panel(
            f"[bold]{type(err).__name__}[/bold] at {where}\n{escape(err.message)}",
            title=f"[red]Cannot decode {escape(path or 'GGUF header')}[/red]",
            border_style="red",
            expand=False,
        )
    )


def _render_summary(rep: AnalysisReport) -> None:
    """Render a high-level summary table."""
    t = Table(title="GGUF Verification Summary", box=box.SIMPLE_HEAVY)
    t.add_column("Field", style="bold")
    t.add_column("Value")
    t.add_row("Path", escape(rep.file_path))
    t.add_row("Size (bytes)", str(rep.file_size))
    t.add_row("Format", rep.format)
    t.add_row("Stages", ", ".join(rep.stages_run) or "none")
    for k, v in rep.metadata.items():
        if k == "profile":
            continue
        t.add_row(k, escape(str(v)))
    console.print(t)


def _render_kv_table(findings: List[Finding]) -> None:
    """Renders the key/value store with per-key type validation."""
    table = Table(
        title="Key-Value Store Validation", box=box.ROUNDED, title_style="bold magenta"
    )
    table.add_column("Status", justify="center", width=8)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Type", style="yellow")
    table.add_column("Addr", justify="right", style="dim")
    table.add_column("Value", style="white")
    table.add_column("Details")

    findings.sort(key=lambda f: f.context.get("start", float("inf")))
    for f in findings:
        ctx = f.context
        addr = f"{ctx['start']}-{ctx['end']}" if "start" in ctx else "-"
        table.add_row(
            _status(f.ok),
            escape(ctx.get("key", "N/A")),
            ctx.get("type", "N/A"),
            addr,
            escape(ctx.get("value", "")),
            escape(f.details),
        )
    console.print(table)


def _render_combined_tensor_table(title: str, findings: List[Finding]) -> None:
    """Renders a single, combined table for tensor layout, bounds, and size integrity."""
    table = Table(title=title, box=box.ROUNDED, show_lines=False, title_style="bold magenta")
    table.add_column("Status", justify="center", width=8)
    table.add_column("Index", justify="right", style="dim")
    table.add_column("Tensor Name", style="cyan", no_wrap=True)
    table.add_column("Start Address", justify="right", style="white")
    table.add_column("End Address", justify="right", style="white")
    table.add_column("On-Disk Size", justify="right", style="white")
    table.add_column("Expected Size", justify="right", style="white")
    table.add_column("GGML Type", justify="left", style="yellow")
    table.add_column("Dimensions", justify="left", style="green")

    findings.sort(key=lambda f: f.context.get("start", 0))

    for index, f in enumerate(findings, start=1):
        tensor_name = f.name.split(":", 1)[1]
        ctx = f.context

        on_disk = str(ctx.get("on_disk", "N/A"))
        expected = str(ctx.get("expected", "N/A"))
        if not f.ok:
            on_disk = f"[red]{on_disk}[/red]"
            expected = f"[yellow]{expected}[/yellow]"

        table.add_row(
            _status(f.ok),
            str(index),
            escape(tensor_name),
            str(ctx.get("start", "N/A")),
            str(ctx.get("end", "N/A")),
            on_disk,
            expected,
            ctx.get("type", "N/A"),
            ctx.get("dims", "N/A"),
        )

    console.print(table)


def _render_generic_table(
    title: str, findings: List[Finding], *, custom_sort_order: List[str] | None = None
) -> None:
    """Generic renderer for finding groups, with optional custom sorting."""
    table = Table(title=title, box=box.ROUNDED, show_lines=False, title_style="bold magenta")
    table.add_column("Status", justify="center", width=8)
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Details", style="white")

    if custom_sort_order:
        sort_map = {name: i for i, name in enumerate(custom_sort_order)}
        findings.sort(key=lambda f: sort_map.get(f.name.split(":", 1)[-1], 999))
    else:
        findings.sort(key=lambda x: x.name)

    for f in findings:
        check_name = f.name.split(":", 1)[-1].replace("_", " ").title()
        if check_name == "Kv Store":
            check_name = "KV Store"
        table.add_row(_status(f.ok), check_name, escape(f.details))

    console.print(table)


def _render_reason_matrix(rep: AnalysisReport) -> None:
    """Render the reason matrix table."""
    if not rep.reason_matrix:
        return
    rt = Table(
        title="Reason Matrix (Decode Failure Explanations)",
        box=box.SIMPLE_HEAVY,
        show_lines=False,
    )
    rt.add_column("Target", style="bold")
    rt.add_column("Error", style="red")
    rt.add_column("Offset", justify="right")
    rt.add_column("Reason")
    for entry in rep.reason_matrix:
        offset = str(entry.offset) if entry.offset is not None else "?"
        rt.add_row(entry.target, entry.error, offset, escape(entry.reason))
    console.print(rt)


def render_report(rep: AnalysisReport) -> None:
    """Renders the full, detailed console report for a GGUF verification run."""
    _render_summary(rep)

    groups = defaultdict(list)
    for f in rep.findings:
        group = f.name.split(":", 1)[0] if ":" in f.name else "parse"
        groups[group].append(f)

    if "parse" in groups:
        _render_generic_table("Decode", groups["parse"])

    integrity_sort_order = [
        "magic_version",
        "Magic_Bytes",
        "GGUF_Header",
        "KV_Store",
        "Tensor_Info",
        "alignment_power_of_two",
        "data_offset_bounds",
        "tensor_offsets_sorted",
        "tensor_offsets_aligned",
        "tensor_non_overlap",
        "file_address_space_boundary",
        "unique_keys",
        "quantization_profile",
    ]

    if "structural_integrity" in groups:
        _render_generic_table(
            "Structural Integrity Checks",
            groups["structural_integrity"],
            custom_sort_order=integrity_sort_order,
        )

    if "kv_store" in groups:
        _render_kv_table(groups["kv_store"])

    if "tensor_layout" in groups:
        _render_combined_tensor_table(
            "Tensor Layout & Size Integrity Checks", groups["tensor_layout"]
        )

    _render_reason_matrix(rep)
