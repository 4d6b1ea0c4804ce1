"""nexus-plugin validate — Check plugin.json against the manifest rules."""

from pathlib import Path

import typer
from rich.console import Console

from nexus_plugin.manifest import ManifestValidator
from nexus_plugin.reporter import render_report

console = Console()


def validate_plugin(
    path: Path = typer.Argument(
        Path("."),
        help="Plugin directory containing plugin.json, or the manifest file itself.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as a single JSON record (for CI parsing)."
    ),
):
    """Validate a plugin manifest.

    Exits 0 when there are no errors (warnings are allowed), 1 otherwise.

    Examples:

        nexus-plugin validate

        nexus-plugin validate ./my-plugin --json
    """
    report = ManifestValidator().validate(path)
    ok = render_report(report, json_mode=json_output, console=console)
    raise typer.Exit(0 if ok else 1)
