"""CLI command for filling a web form from a JSON field list."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

console = Console()


def load_fields(path: Path) -> list[dict[str, Any]]:
    """Read a JSON field list: ``[{"name": "email", "value": "a@b.com"}, ...]``."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("fields", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of field objects")
    return data


async def _fill(url: str, raw_fields: list[dict[str, Any]], form: str, submit: str | None, settings) -> dict:
    from webrobot.browser.driver import By
    from webrobot.browser.playwright_driver import launch
    from webrobot.forms.models import FieldSpec
    from webrobot.robot import WebRobot

    specs = [FieldSpec.from_dict(item) for item in raw_fields]
    names = [item["name"] for item in raw_fields if "name" in item]
    form_locator = By.xpath(form)

    async with launch(settings) as driver:
        robot = WebRobot(driver, settings)
        await robot.open(url)
        form_el = await robot.fill_form(specs, form_locator)
        values = await robot.get_form_values(form_el, names)
        if submit:
            await robot.click(By.xpath(submit))
        await robot.close()
    return values


def fill(
    url: str = typer.Argument(..., help="Page containing the form."),
    fields_file: Path = typer.Argument(..., help="JSON file with the fields to fill."),
    form: str = typer.Option(..., "--form", help="XPath of the form element."),
    submit: Optional[str] = typer.Option(None, "--submit", help="XPath of the submit control."),
    headless: Optional[bool] = typer.Option(None, "--headless/--headed", help="Override browser.headless."),
) -> None:
    """Open URL, fill the form and print the values read back from it."""
    from webrobot.exceptions import WebRobotError
    from webrobot.settings import get_settings

    if not fields_file.exists():
        console.print(f"[red]File not found:[/red] {fields_file}")
        raise typer.Exit(code=1)

    try:
        raw_fields = load_fields(fields_file)
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid fields file: {e}")
        raise typer.Exit(code=1)

    settings = get_settings()
    if headless is not None:
        settings = settings.model_copy(
            update={"browser": settings.browser.model_copy(update={"headless": headless})}
        )

    try:
        values = asyncio.run(_fill(url, raw_fields, form, submit, settings))
    except WebRobotError as e:
        console.print(f"[red]✗[/red] Form fill failed: {e}")
        raise typer.Exit(code=1)

    table = Table(title="Form values")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in values.items():
        table.add_row(name, "" if value is None else str(value))
    console.print(table)
    console.print(f"[green]✓[/green] Filled {len(raw_fields)} field(s)")
