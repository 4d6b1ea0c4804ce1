"""Render a ValidationReport for humans (rich) or for CI (one JSON line)."""

from __future__ import annotations

import os
from typing import Optional

from rich.console import Console
from rich.markup import escape

from nexus_plugin.types import ResultLevel, ValidationReport

_MARKERS = {
    ResultLevel.PASS: "[green]✔[/green]",
    ResultLevel.FAIL: "[red]✘[/red]",
    ResultLevel.WARN: "[yellow]⚠[/yellow]",
}


def _display_path(path: str) -> str:
    try:
        return os.path.relpath(path) or path
    except ValueError:
        # different drive on Windows
        return path


def render_json(report: ValidationReport, console: Console) -> bool:
    """Emit exactly one JSON record and nothing else."""
    console.out(report.to_json(), highlight=False)
    return report.ok


def render_human(report: ValidationReport, console: Console) -> bool:
    console.print()
    console.print(f"  Validating {escape(_display_path(report.file))}", emoji=False)
    console.print()
    for result in report.results:
        console.print(f"  {_MARKERS[result.level]} {escape(result.message)}", emoji=False)
    console.print()

    if report.ok:
        suffix = f" with {report.warnings} warning(s)" if report.warnings else ""
        console.print(f"  [green]Validation passed[/green]{suffix}")
    else:
        suffix = f", {report.warnings} warning(s)" if report.warnings else ""
        console.print(f"  [red]{report.errors} error(s)[/red]{suffix}")
    console.print()
    return report.ok


def render_report(
    report: ValidationReport,
    json_mode: bool = False,
    console: Optional[Console] = None,
) -> bool:
    """Render ``report`` and return the overall success flag.

    Args:
        report: Result of a validation run.
        json_mode: Structured output for automated callers.
        console: Output console. Defaults to stdout.
    """
    console = console or Console()
    if json_mode:
        return render_json(report, console)
    return render_human(report, console)
