"""Session monitoring: de-duplicated error reporting and log set-up.

Usage::

    from webrobot.monitoring import ErrorLogger, configure_logging

    configure_logging("DEBUG")
    errors = ErrorLogger(tag="session-1")
    result = await run_pipeline(steps, errors.wrap())
"""

from __future__ import annotations

import json as _json
import logging
import sys

from webrobot.monitoring.error_logger import SESSION_LOGGER_PREFIX, ErrorLogger, normalize_indent, summarize

__all__ = ["ErrorLogger", "JsonFormatter", "configure_logging", "normalize_indent", "summarize"]

_PLAIN_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Records from a session's error logger carry that session's tag under
    ``session``; records with an exception that went through a pipeline
    carry its ``[[index, label], ...]`` trail under ``steps``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, _TIME_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.name.startswith(SESSION_LOGGER_PREFIX):
            entry["session"] = record.name[len(SESSION_LOGGER_PREFIX):]
        if record.exc_info and record.exc_info[1]:
            steps = getattr(record.exc_info[1], "webrobot_steps", None)
            if steps:
                entry["steps"] = [list(step) for step in steps]
            entry["exception"] = self.formatException(record.exc_info)
        return _json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Replace the root handlers with a single stderr handler.

    Args:
        level: Log level name; unknown names fall back to ``INFO``.
        json_format: Emit JSON lines instead of plain text.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(_PLAIN_FORMAT, _TIME_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Quieten noisy libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
