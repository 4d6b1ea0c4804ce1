"""nexus-plugin config — Show resolved nexus-plugin configuration."""

from rich import box
from rich.console import Console
from rich.table import Table

console = Console()


def config_show():
    """Show the resolved nexus-plugin configuration.

    Reads from environment variables and .env file.

    Example:
        NEXUS_PLUGIN_REGISTRY_OWNER=my-org nexus-plugin config
    """
    from nexus_plugin.config import NexusPluginConfig
    cfg = NexusPluginConfig()

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        show_lines=False,
        title="[bold]nexus-plugin Configuration[/bold]",
    )
    table.add_column("Key", style="cyan", width=26)
    table.add_column("Value", width=30)
    table.add_column("Env Var", style="dim", width=40)

    sections = [
        ("App", ["log_level"]),
        ("Registry", [
            "registry_owner",
            "registry_repo",
            "registry_default_branch",
            "image_registry",
        ]),
        ("Timeouts (s)", ["command_timeout", "docker_pull_timeout", "manifest_fetch_timeout"]),
        ("Scaffold", [
            "default_port",
            "default_description",
            "default_license",
            "min_nexus_version",
        ]),
    ]

    first = True
    for section_name, fields in sections:
        if not first:
            table.add_row("", "", "")
        first = False
        table.add_row(f"[bold dim]── {section_name} ──[/bold dim]", "", "")
        for attr in fields:
            val = getattr(cfg, attr, None)
            display = "[dim](not set)[/dim]" if val is None else str(val)
            table.add_row(f"  {attr}", display, f"NEXUS_PLUGIN_{attr.upper()}")

    console.print()
    console.print(table)
    console.print()
    console.print("[dim]Source: environment variables + .env file (prefix: NEXUS_PLUGIN_)[/dim]")
