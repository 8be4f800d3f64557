"""CLI command tests (via typer.testing.CliRunner)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from webrobot.cli.app import app
from webrobot.cli.fill_cmd import load_fields


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


class TestApp:
    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("webrobot ")

    def test_no_command_shows_help(self, runner):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "fill" in result.output


class TestSettingsCommands:
    def test_show(self, runner):
        result = runner.invoke(app, ["settings", "show"])
        assert result.exit_code == 0
        assert '"timeout_ms"' in result.output

    def test_validate(self, runner):
        result = runner.invoke(app, ["settings", "validate"])
        assert result.exit_code == 0
        assert "Settings are valid" in result.output

    def test_validate_unsupported_browser(self, runner, monkeypatch):
        monkeypatch.setenv("WEBROBOT_BROWSER__NAME", "lynx")
        result = runner.invoke(app, ["settings", "validate"])
        assert result.exit_code == 1
        assert "Unsupported browser" in result.output


class TestHtmlCommands:
    def test_truncate_file(self, runner, tmp_path):
        page = tmp_path / "snippet.html"
        page.write_text("<ul>" + "<li>entry</li>" * 20 + "</ul>")

        result = runner.invoke(app, ["html", "truncate", str(page), "--max-length", "40"])

        assert result.exit_code == 0
        assert result.output.strip().endswith("...</ul>")

    def test_truncate_stdin_short_input(self, runner):
        result = runner.invoke(app, ["html", "truncate"], input="<b>hi</b>")
        assert result.exit_code == 0
        assert result.output.strip() == "<b>hi</b>"

    def test_truncate_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["html", "truncate", str(tmp_path / "nope.html")])
        assert result.exit_code == 1


class TestFillCommand:
    def test_load_fields_list_and_object(self, tmp_path):
        as_list = tmp_path / "list.json"
        as_list.write_text(json.dumps([{"name": "q", "value": "x"}]))
        as_object = tmp_path / "object.json"
        as_object.write_text(json.dumps({"fields": [{"id": "q"}]}))

        assert load_fields(as_list) == [{"name": "q", "value": "x"}]
        assert load_fields(as_object) == [{"id": "q"}]

    def test_load_fields_rejects_scalars(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("42")
        with pytest.raises(ValueError):
            load_fields(bad)

    def test_missing_fields_file(self, runner, tmp_path):
        result = runner.invoke(app, ["fill", "https://example.com/", str(tmp_path / "x.json"), "--form", "//form"])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_fill_prints_values(self, runner, tmp_path):
        fields = tmp_path / "fields.json"
        fields.write_text(json.dumps([{"name": "email", "value": "a@b.com"}]))

        with patch("webrobot.cli.fill_cmd._fill", new=AsyncMock(return_value={"email": "a@b.com"})) as fill:
            result = runner.invoke(app, ["fill", "https://example.com/", str(fields), "--form", "//form", "--headed"])

        assert result.exit_code == 0, result.output
        assert "a@b.com" in result.output
        settings = fill.await_args.args[4]
        assert settings.browser.headless is False

    def test_fill_failure_exits_nonzero(self, runner, tmp_path):
        from webrobot.exceptions import ElementNotFoundError

        fields = tmp_path / "fields.json"
        fields.write_text(json.dumps([{"name": "email", "value": "a@b.com"}]))

        with patch("webrobot.cli.fill_cmd._fill", new=AsyncMock(side_effect=ElementNotFoundError("email"))):
            result = runner.invoke(app, ["fill", "https://example.com/", str(fields), "--form", "//form"])

        assert result.exit_code == 1
        assert "Form fill failed" in result.output
