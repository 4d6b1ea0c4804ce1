"""nexus-plugin publish — Submit a plugin to the community registry."""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from nexus_plugin.exceptions import NexusPluginError
from nexus_plugin.prompts import is_interactive, select_input_source
from nexus_plugin.publish import Publisher

console = Console()
err_console = Console(stderr=True)


def publish_plugin(
    manifest_url: Optional[str] = typer.Option(
        None, "--manifest-url", help="Raw URL of plugin.json (required when not interactive)"
    ),
    categories: Optional[str] = typer.Option(
        None, "--categories", help="Comma-separated registry categories"
    ),
):
    """Validate the plugin in the current directory and open a registry PR.

    Requires an authenticated GitHub CLI (gh) and a pushed container image.

    Examples:

        nexus-plugin publish

        nexus-plugin publish --manifest-url https://raw.githubusercontent.com/me/nexus-weather/main/plugin.json --categories utilities
    """
    source = select_input_source(
        {"manifest_url": manifest_url, "categories": categories},
        interactive=is_interactive(),
        console=console,
    )

    async def _run():
        publisher = Publisher(source, console=console)
        try:
            result = await publisher.publish()
        except NexusPluginError as exc:
            if not source.interactive:
                record = {"error": getattr(exc, "code", "command_failed"), "message": str(exc)}
                err_console.out(json.dumps(record), highlight=False)
            else:
                console.print(f"  [red]Error:[/red] {escape(str(exc))}")
                hint = getattr(exc, "hint", "")
                if hint:
                    console.print(f"  [dim]{escape(hint)}[/dim]")
            raise typer.Exit(1)

        if not source.interactive:
            console.out(result.model_dump_json(), highlight=False)
            return

        action = "Update" if result.is_update else "Submission"
        console.print(f"  [green]✔[/green] {action} PR opened: {escape(result.pr_url)}\n")

    asyncio.run(_run())
