"""WebRobot — conditional step pipelines and form filling for browser automation."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("webrobot")
except Exception:
    __version__ = "0.0.0"
