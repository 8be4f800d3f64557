"""Configuration loader for WebRobot using Pydantic settings.

Config precedence (highest wins):
  1. Explicit constructor arguments / CLI flags
  2. Environment variables (WEBROBOT_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("WEBROBOT_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "WEBROBOT_ENV"
DEFAULT_ENV = "local"

SUPPORTED_BROWSERS: tuple[str, ...] = ("chromium", "chrome", "firefox", "webkit")


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class BrowserSettings(BaseSettings):
    """Browser session settings."""

    model_config = SettingsConfigDict(env_prefix="WEBROBOT_BROWSER__")

    name: str = "chromium"
    headless: bool = True
    url: str = ""
    session: str = ""
    timeout_ms: int = Field(default=10_000, ge=0)
    wait_ms: int = Field(default=1_000, ge=0)
    download_dir: str = ""


class FormSettings(BaseSettings):
    """Form fill engine defaults."""

    model_config = SettingsConfigDict(env_prefix="WEBROBOT_FORM__")

    slash_safe: bool = True
    clear_using_key: bool = False
    snippet_length: int = Field(default=100, ge=10)
    submit_delay_ms: int = Field(default=0, ge=0)


class LoggingSettings(BaseSettings):
    """Log output configuration."""

    model_config = SettingsConfigDict(env_prefix="WEBROBOT_LOGGING__")

    level: str = "INFO"
    json_format: bool = False


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root WebRobot settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="WEBROBOT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    form: FormSettings = Field(default_factory=FormSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths against project_root."""
        download_dir = self.browser.download_dir
        if download_dir and not Path(download_dir).is_absolute():
            self.browser.download_dir = str(self.project_root / download_dir)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
