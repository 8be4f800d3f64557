"""Unit tests for WebRobot settings.

Covers default loading, env var overrides, TOML layering, path resolution
and validation for the browser, form and logging sections.
"""

from __future__ import annotations

import os

import pytest
from pydantic import ValidationError


class TestSettings:
    """Core settings loading and override mechanics."""

    def test_default_settings_load(self, monkeypatch):
        """Settings should load without any env overrides."""
        monkeypatch.delenv("WEBROBOT_ENV", raising=False)
        from webrobot.settings import get_settings

        s = get_settings()
        assert s.env == "local"
        assert s.browser.name == "chromium"
        assert s.browser.timeout_ms == 10_000
        assert s.browser.wait_ms == 1_000
        assert s.form.slash_safe is True
        assert s.form.snippet_length == 100
        assert s.logging.level == "INFO"

    def test_get_settings_is_cached(self):
        from webrobot.settings import get_settings

        assert get_settings() is get_settings()

    def test_env_override(self, monkeypatch):
        """WEBROBOT_BROWSER__NAME should override the default."""
        monkeypatch.setenv("WEBROBOT_BROWSER__NAME", "firefox")
        from webrobot.settings.config import Settings

        s = Settings()
        assert s.browser.name == "firefox"

    def test_nested_env_var_override_double_underscore(self, monkeypatch):
        """Double-underscore nested env vars should override section fields."""
        monkeypatch.setenv("WEBROBOT_FORM__SUBMIT_DELAY_MS", "250")
        monkeypatch.setenv("WEBROBOT_LOGGING__JSON_FORMAT", "true")
        from webrobot.settings.config import Settings

        s = Settings()
        assert s.form.submit_delay_ms == 250
        assert s.logging.json_format is True

    def test_explicit_values_win(self):
        from webrobot.settings.config import Settings

        s = Settings(browser={"headless": False})
        assert s.browser.headless is False
        assert s.browser.timeout_ms == 10_000

    def test_env_profile_toml_layer(self, monkeypatch, tmp_path):
        """settings.<env>.toml should layer over the defaults."""
        from webrobot.settings import config

        (tmp_path / "settings.default.toml").write_text('[browser]\nname = "chromium"\nwait_ms = 5\n')
        (tmp_path / "settings.ci.toml").write_text('[browser]\nname = "webkit"\n')
        monkeypatch.setattr(config, "CONFIG_DIR", tmp_path)
        monkeypatch.setenv("WEBROBOT_ENV", "ci")

        s = config.Settings()
        assert s.env == "ci"
        assert s.browser.name == "webkit"
        assert s.browser.wait_ms == 5

    def test_download_dir_resolved_relative_to_project_root(self):
        from webrobot.settings.config import Settings

        s = Settings(browser={"download_dir": "data/downloads"})
        assert os.path.isabs(s.browser.download_dir)
        assert s.browser.download_dir.endswith(os.path.join("data", "downloads"))

    def test_negative_timeout_rejected(self):
        from webrobot.settings.config import Settings

        with pytest.raises(ValidationError):
            Settings(browser={"timeout_ms": -1})

    def test_supported_browsers(self):
        from webrobot.settings import SUPPORTED_BROWSERS

        assert set(SUPPORTED_BROWSERS) == {"chromium", "chrome", "firefox", "webkit"}
