"""
Typer CLI entry point.

    readiness scan PATH [--format markdown|console|records] [--output FILE] ...
    readiness rules

Exit codes for `scan`: 1 when the verdict is NOT_READY, 2 on a configuration
error, 0 otherwise.
"""

from __future__ import annotations

import dataclasses
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich import box

from readiness.config import DEFAULT_WORKERS, get_default_config
from readiness.engine import run_scan
from readiness.errors import ConfigError
from readiness.external import DEFAULT_TOOL_TIMEOUT
from readiness.findings.records import encode_records
from readiness.reporting.console import print_run
from readiness.reporting.markdown import render_markdown
from readiness.verdict import Verdict, dimension_for

logger = logging.getLogger(__name__)

app = typer.Typer(help="Repo public-readiness scanner: secrets, PII, Web3 keys and release hygiene.")

EXIT_NOT_READY = 1
EXIT_CONFIG_ERROR = 2


class OutputFormat(str, Enum):
    markdown = "markdown"
    console = "console"
    records = "records"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text, nl=not text.endswith("\n"))
        return
    output.write_text(text, encoding="utf-8")
    typer.echo(f"Report written to {output}", err=True)


@app.command()
def scan(
    target: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
        resolve_path=True,
        help="Repository root to scan.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.markdown, "--format", "-f", help="Report format."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the report to a file instead of stdout."
    ),
    workers: int = typer.Option(DEFAULT_WORKERS, "--workers", "-j", min=1, help="File scanning threads."),
    no_external: bool = typer.Option(False, "--no-external", help="Do not run external scanners."),
    tool_timeout: float = typer.Option(
        DEFAULT_TOOL_TIMEOUT, "--tool-timeout", min=1.0, help="Seconds before an external scanner is abandoned."
    ),
    keywords_file: Optional[Path] = typer.Option(
        None, "--keywords-file", help="Extra internal-reference keywords (one per line or pipe-separated)."
    ),
    disable_rule: List[str] = typer.Option(
        [], "--disable-rule", "-d", help="Check id to disable (repeatable)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and remediation hints."),
) -> None:
    """
    Scan a repository and print its readiness report.

    SCAN_INTERNAL_KEYWORDS (pipe-separated) extends the internal-reference
    keywords.
    """
    _setup_logging(verbose)

    try:
        config = get_default_config(keywords_file=keywords_file)
        config = dataclasses.replace(
            config,
            workers=workers,
            run_external_tools=not no_external,
            tool_timeout=tool_timeout,
            disabled_rules=frozenset(disable_rule),
        )
        run = run_scan(target, config)
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    if output_format is OutputFormat.console:
        if output is not None:
            with output.open("w", encoding="utf-8") as fh:
                print_run(run, verbose=verbose, console=Console(file=fh, width=120))
            typer.echo(f"Report written to {output}", err=True)
        else:
            print_run(run, verbose=verbose)
    elif output_format is OutputFormat.records:
        _emit(encode_records(run.findings), output)
    else:
        _emit(render_markdown(run), output)

    if run.verdict is Verdict.NOT_READY:
        raise typer.Exit(code=EXIT_NOT_READY)


@app.command()
def rules() -> None:
    """List the check ids of every built-in rule with severity and dimension."""
    config = get_default_config(env={})
    table = Table(show_header=True, header_style="bold magenta", box=box.SIMPLE)
    table.add_column("Check", style="cyan")
    table.add_column("Severity")
    table.add_column("Dimension")
    table.add_column("Name", style="white")
    for rule in config.rules:
        table.add_row(rule.id, rule.severity.value, dimension_for(rule.id).value, rule.name)
    Console().print(table)


def main() -> None:
    """Entry point for the `readiness` console script and `python -m readiness.main`."""
    app()


if __name__ == "__main__":
    main()
