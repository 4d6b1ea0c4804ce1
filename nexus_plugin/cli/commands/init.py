"""nexus-plugin init — Scaffold a new plugin project."""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from nexus_plugin.exceptions import ScaffoldError
from nexus_plugin.prompts import is_interactive, select_input_source
from nexus_plugin.scaffold import gather_options, scaffold_plugin

console = Console()


def init_plugin(
    name: Optional[str] = typer.Option(None, "--name", help="Plugin display name (enables scripted mode)"),
    author: Optional[str] = typer.Option(None, "--author", help="Author name"),
    description: Optional[str] = typer.Option(None, "--description", help="Short description"),
    port: Optional[str] = typer.Option(None, "--port", help="UI port (default: 80)"),
    permissions: Optional[str] = typer.Option(
        None, "--permissions", help="Comma-separated permissions, or 'none'"
    ),
    mcp: Optional[bool] = typer.Option(None, "--mcp/--no-mcp", help="Include MCP tools skeleton"),
    settings: Optional[bool] = typer.Option(
        None, "--settings/--no-settings", help="Include settings skeleton"
    ),
    plugin_id: Optional[str] = typer.Option(None, "--id", help="Plugin id (default: com.<author>.<slug>)"),
    out: Optional[str] = typer.Option(None, "--out", help="Output directory (default: slug)"),
):
    """Scaffold a new Nexus plugin project.

    Prompts for anything not given on the command line. Passing --name (or
    running without a TTY) switches to scripted mode, which never prompts
    and prints a single JSON line.

    Example:
        nexus-plugin init --name "Weather" --author "Jane" --permissions none
    """
    answers = {
        "name": name,
        "author": author,
        "description": description,
        "port": port,
        "permissions": permissions,
        "mcp": mcp,
        "settings": settings,
        "id": plugin_id,
        "out": out,
    }
    source = select_input_source(answers, interactive=is_interactive() and not name, console=console)

    if not source.interactive and not name:
        console.print("[red]Error:[/red] --name is required in non-interactive mode.")
        raise typer.Exit(1)

    if source.interactive:
        console.print("\n  [bold]nexus-plugin init[/bold] — Create a new Nexus plugin\n")

    try:
        options = gather_options(source)
        result = scaffold_plugin(options)
    except ScaffoldError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    if not source.interactive:
        console.out(json.dumps(result.model_dump()), highlight=False)
        return

    console.print(f"\n  [green]✔[/green] Created {escape(result.dir)}/\n")
    for rel_path in result.files:
        console.print(f"    [dim]{escape(rel_path)}[/dim]")
    console.print("\n  [bold]Next steps:[/bold]")
    console.print(f"    cd {escape(result.dir)}")
    console.print("    # edit src/server.js and src/public/index.html")
    console.print("    nexus-plugin validate")
    console.print("    git init && git add -A && git commit -m 'Initial commit'")
    console.print("    # push to GitHub; the workflow builds and pushes the image")
    console.print("    nexus-plugin publish\n")
