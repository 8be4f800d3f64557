"""Layered configuration (TOML files + ``WEBROBOT_*`` environment)."""

from webrobot.settings.config import SUPPORTED_BROWSERS, Settings, get_settings

__all__ = ["SUPPORTED_BROWSERS", "Settings", "get_settings"]
