# gguf_info/cli.py
"""
cli.py

Rich console CLI:
- inspect: decode a .gguf header and print metadata and tensor descriptors.
- scan:    decode and verify the header layout against the file, print
           findings and the reason matrix.
- version: show the package version.
"""
from __future__ import annotations

import argparse
import os
from typing import List, Optional

from loguru import logger
from rich.console import Console
from rich.panel import Panel

from gguf_info import __version__
from gguf_info.analysis.gguf_analyzer import STAGES, GGUFAnalyzer
from gguf_info.logging import configure_logging
from gguf_info.model_formats.gguf.gguf import GGUF_DEFAULT_ALIGNMENT, GGUFParseError
from gguf_info.model_formats.gguf.gguf_versions import read_gguf_header
from gguf_info.observability import Timer
from gguf_info.reporting import gguf_reporter
from gguf_info.reporting.json_reporter import write_json

console = Console()

AVAILABLE_STAGES: List[str] = STAGES


def _positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return n


def _add_common(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("path", help="Path to a .gguf model file")
    sp.add_argument("--debug", action="store_true", help="Enable debug logging")
    sp.add_argument(
        "--trace", action="store_true", help="Log every decoded metadata record"
    )
    sp.add_argument("--json-out", type=str, default=None, help="Write JSON output to this path")
    sp.add_argument(
        "--default-alignment",
        type=_positive_int,
        default=GGUF_DEFAULT_ALIGNMENT,
        metavar="N",
        help=f"Alignment used when the file declares none (default: {GGUF_DEFAULT_ALIGNMENT})",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gguf-info",
        description="Inspect GGUF model headers without loading tensor data.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    sub = p.add_subparsers(dest="cmd", title="Available Commands", metavar="<command>")

    sp_inspect = sub.add_parser("inspect", help="Print the header of a .gguf file")
    _add_common(sp_inspect)
    sp_inspect.add_argument(
        "--max-array-items",
        type=_positive_int,
        default=3,
        metavar="N",
        help="Array items shown per metadata value (default: 3)",
    )

    sp_scan = sub.add_parser("scan", help="Verify the header layout of a .gguf file")
    _add_common(sp_scan)
    sp_scan.add_argument(
        "--stage",
        nargs="+",
        choices=AVAILABLE_STAGES,
        metavar="STAGE",
        help=(
            f"Run only specific verification stages. Defaults to all stages if not provided.\n"
            f"Available stages: {', '.join(AVAILABLE_STAGES)}.\n"
            f"Can be combined, e.g., --stage structure layout"
        ),
    )

    sub.add_parser("version", help="Show the version of gguf-info")

    return p


def _inspect(args: argparse.Namespace) -> int:
    try:
        with Timer("decode") as t:
            header = read_gguf_header(args.path, default_alignment=args.default_alignment)
    except GGUFParseError as e:
        gguf_reporter.render_parse_error(e, path=args.path)
        return 1
    logger.debug("Header decoded in {ms:.2f}ms", ms=t.duration_ms)

    gguf_reporter.render_header(header, path=args.path, max_array_items=args.max_array_items)
    if args.json_out:
        write_json(header, args.json_out)
        console.print(f"[dim]Wrote JSON header → {args.json_out}[/dim]")
    return 0


def _scan(args: argparse.Namespace) -> int:
    stages_to_run = args.stage or AVAILABLE_STAGES
    console.print(f"[dim]Running stages: {', '.join(stages_to_run)}...[/dim]")

    analyzer = GGUFAnalyzer(args.path, default_alignment=args.default_alignment)
    rep = analyzer.run(stages=stages_to_run)

    console.print(
        Panel(
            f"[bold]Result:[/bold] {'[green]OK[/green]' if rep.ok else '[red]FAILED[/red]'}",
            style="bold cyan",
        )
    )
    gguf_reporter.render_report(rep)

    if args.json_out:
        write_json(rep, args.json_out)
        console.print(f"[dim]Wrote JSON report → {args.json_out}[/dim]")

    return 0 if rep.ok else 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 0

    if args.cmd == "version":
        console.print(f"gguf-info version {__version__}")
        return 0

    configure_logging(debug=args.debug, trace=args.trace)
    if not os.path.isfile(args.path):
        console.print(f"[red]File not found:[/red] {args.path}")
        return 2

    if args.cmd == "inspect":
        return _inspect(args)
    if args.cmd == "scan":
        return _scan(args)

    parser.print_help()
    return 1
