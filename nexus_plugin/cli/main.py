"""nexus-plugin CLI — Typer application."""

import logging

import typer
from rich.console import Console

from nexus_plugin.config import config
from nexus_plugin.version import __version__

app = typer.Typer(
    name="nexus-plugin",
    help="nexus-plugin — Developer CLI for Nexus plugins: scaffold, validate, publish.",
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console()


def configure_logging(level: str) -> None:
    """Log to stderr so stdout stays parseable in --json / CI modes."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
):
    """nexus-plugin CLI."""
    if version:
        console.print(f"nexus-plugin v{__version__}")
        raise typer.Exit()
    configure_logging(config.log_level)
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


# ── Plugin workflow commands ───────────────────────────────────────────────────
from nexus_plugin.cli.commands import init, validate, publish  # noqa: E402

app.command(name="init", help="Scaffold a new plugin project")(init.init_plugin)
app.command(name="validate", help="Validate a plugin manifest")(validate.validate_plugin)
app.command(name="publish", help="Publish plugin to the community registry")(publish.publish_plugin)

# ── Parity commands ────────────────────────────────────────────────────────────
from nexus_plugin.cli.commands import config as config_cmd  # noqa: E402

app.command(name="config", help="Show resolved configuration")(config_cmd.config_show)


if __name__ == "__main__":
    app()
