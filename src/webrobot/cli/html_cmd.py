"""CLI commands for HTML snippet utilities."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from webrobot.browser.html_truncate import DEFAULT_MAX_LENGTH, truncate_html

html_app = typer.Typer(help="HTML snippet utilities used in error reports.")
console = Console()


@html_app.command("truncate")
def truncate(
    file: Optional[Path] = typer.Argument(None, help="HTML file to read; stdin when omitted."),
    max_length: int = typer.Option(DEFAULT_MAX_LENGTH, "--max-length", "-n", min=1, help="Target length."),
) -> None:
    """Shorten an HTML fragment while keeping it well-formed."""
    if file is not None:
        if not file.exists():
            console.print(f"[red]File not found:[/red] {file}")
            raise typer.Exit(code=1)
        html = file.read_text(encoding="utf-8")
    else:
        html = sys.stdin.read()

    typer.echo(truncate_html(html, max_length))
