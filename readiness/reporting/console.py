# Rich console output: format a scan run for terminal display.

from __future__ import annotations

from typing import Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from readiness.engine import ScanRun
from readiness.findings.models import Finding, Severity
from readiness.verdict import DimensionReport, DimensionStatus, Verdict

# Severity → Rich style
SEVERITY_STYLE = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "bold yellow",
    Severity.LOW: "bold blue",
    Severity.SKIPPED: "dim",
}

STATUS_STYLE = {
    DimensionStatus.BLOCKED: "bold red",
    DimensionStatus.WARN: "bold yellow",
    DimensionStatus.OK: "bold green",
}

VERDICT_STYLE = {
    Verdict.NOT_READY: "red",
    Verdict.NEEDS_WORK: "yellow",
    Verdict.READY: "green",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: Severity) -> str:
    return SEVERITY_STYLE.get(severity, DEFAULT_SEVERITY_STYLE)


def print_run(run: ScanRun, verbose: bool = False, console: Console | None = None) -> None:
    """
    Print a scan run: one table per dimension with findings, a summary table
    of dimension statuses and a verdict panel. With verbose, remediation text
    is shown under each finding table.
    """
    console = console or Console()

    for report in run.dimensions:
        if report.findings:
            _print_dimension(report, console, verbose)

    _print_summary_table(run.dimensions, console)
    _print_verdict(run, console)


def _print_dimension(report: DimensionReport, console: Console, verbose: bool) -> None:
    console.print()
    console.print(Panel(
        f"[bold cyan]{report.dimension.value}[/bold cyan]",
        box=box.SIMPLE_HEAD,
        border_style="blue",
        padding=(0, 1),
    ))

    table = Table(
        show_header=True,
        header_style="bold magenta",
        box=box.SIMPLE,
        padding=(0, 1),
        expand=False,
    )
    table.add_column("Severity", width=10)
    table.add_column("Check", width=26)
    table.add_column("Location", style="cyan")
    table.add_column("Description", style="white")

    for f in report.findings:
        table.add_row(
            Text(f.severity.value, style=_severity_style(f.severity)),
            Text(f"[{f.check_id}]", style="dim"),
            Text(f.location),
            Text(f.description),
        )
    console.print(table)

    if verbose:
        _print_remediations(report.findings, console)


def _print_remediations(findings: Sequence[Finding], console: Console) -> None:
    """One remediation line per check id, in first-seen order."""
    seen: set[str] = set()
    for f in findings:
        if f.check_id in seen:
            continue
        seen.add(f.check_id)
        tag = escape(f"[{f.check_id}]")
        if f.severity is Severity.SKIPPED:
            if f.install_hint:
                console.print(f"  [dim][Install][/dim] {tag} {escape(f.install_hint)}")
        else:
            console.print(f"  [dim][Fix][/dim] {tag} {escape(f.remediation)}")
    if seen:
        console.print()


def _print_summary_table(dimensions: Sequence[DimensionReport], console: Console) -> None:
    table = Table(
        title="Dimensions",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("Dimension", style="white")
    table.add_column("Status", width=8)
    for sev in Severity:
        table.add_column(sev.value.title(), justify="right", width=8)

    for report in dimensions:
        table.add_row(
            report.dimension.value,
            Text(report.status.value, style=STATUS_STYLE[report.status]),
            *(str(report.counts[sev]) for sev in Severity),
        )

    console.print()
    console.print(Panel(table, border_style="cyan", box=box.ROUNDED))


def _print_verdict(run: ScanRun, console: Console) -> None:
    total = sum(1 for f in run.findings if f.severity is not Severity.SKIPPED)
    skipped = len(run.findings) - total
    parts = [
        f"[bold]{run.verdict.value.replace('_', ' ')}[/bold]",
        f"{total} finding{'s' if total != 1 else ''}",
        f"{run.files_scanned} file{'s' if run.files_scanned != 1 else ''} scanned",
    ]
    if skipped:
        parts.append(f"[dim]{skipped} skipped[/dim]")

    console.print()
    console.print(
        Panel(
            " | ".join(parts),
            title=f"Verdict: {escape(run.root.name)}",
            border_style=VERDICT_STYLE[run.verdict],
            box=box.ROUNDED,
        )
    )
