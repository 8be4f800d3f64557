"""CLI commands for inspecting and validating WebRobot settings."""

from __future__ import annotations

import json

import typer
from rich.console import Console

settings_app = typer.Typer(help="Inspect and validate WebRobot configuration.")
console = Console()


@settings_app.command("show")
def show_settings() -> None:
    """Display the currently resolved settings."""
    from webrobot.settings import get_settings

    settings = get_settings()
    console.print_json(json.dumps(settings.model_dump(mode="json"), indent=2, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Validate settings and report any issues."""
    from pydantic import ValidationError

    from webrobot.settings import SUPPORTED_BROWSERS, get_settings

    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1)

    if settings.browser.name not in SUPPORTED_BROWSERS:
        console.print(
            f"[red]✗[/red] Unsupported browser {settings.browser.name!r} "
            f"(supported: {', '.join(SUPPORTED_BROWSERS)})"
        )
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Browser: {settings.browser.name} (headless={settings.browser.headless})")
    console.print(f"  Timeout: {settings.browser.timeout_ms} ms, wait: {settings.browser.wait_ms} ms")
