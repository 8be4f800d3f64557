"""Unified CLI entry point for WebRobot.

Config precedence: settings.default.toml -> settings.local.toml -> env vars (WEBROBOT_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

import typer

from webrobot.cli.fill_cmd import fill
from webrobot.cli.html_cmd import html_app
from webrobot.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("webrobot")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "webrobot — browser form automation CLI. "
    "Config precedence: settings.default.toml -> settings.local.toml -> env vars (WEBROBOT_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.command("fill")(fill)
app.add_typer(html_app, name="html")
app.add_typer(settings_app, name="settings")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"webrobot {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    from webrobot.monitoring import configure_logging
    from webrobot.settings import get_settings

    if ctx.invoked_subcommand == "settings":
        # Let `settings validate` report broken configuration itself.
        configure_logging("DEBUG" if verbose else "INFO")
        return
    log = get_settings().logging
    configure_logging("DEBUG" if verbose else log.level, log.json_format)


if __name__ == "__main__":
    app()
