"""Per-session error logger for pipeline failures.

A failing step deep inside nested pipelines is reported by every pipeline
it propagates through, and the same exception instance reaches each of
their ``on_error`` hooks. The first report logs the full step description
with the error text; every later report of that instance logs a one-line
echo so the log shows the propagation path without repeating the dump.

Each ``ErrorLogger`` owns its own seen-set and its own ``logging`` logger
(``webrobot.errors.<tag>``), so two automation sessions never suppress or
duplicate each other's reports.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from uuid import uuid4

from webrobot.pipeline.executor import PipelineOptions, StepFailure

#: Parent logger of every session; ``ErrorLogger(tag="s1")`` logs as ``webrobot.errors.s1``.
SESSION_LOGGER_PREFIX = "webrobot.errors."

_LEADING_WS = re.compile(r"^[ \t]+")


def normalize_indent(text: str) -> str:
    """Strip the smallest indentation shared by the indented lines of *text*.

    Lines without leading whitespace (typically the first line of a source
    snippet) do not take part in the minimum and are left as they are.
    """
    lines = text.splitlines()
    widths = [len(m.group(0)) for line in lines if line.strip() and (m := _LEADING_WS.match(line))]
    if not widths:
        return text
    indent = min(widths)
    return "\n".join(line[indent:] if _LEADING_WS.match(line) else line for line in lines)


def summarize(text: str) -> str:
    """Return the first non-blank line of *text*, with `` ...`` if more followed."""
    lines = [line for line in text.strip().splitlines() if line.strip()]
    if not lines:
        return ""
    first = lines[0].strip()
    return f"{first} ..." if len(lines) > 1 else first


def _root_cause(error: BaseException) -> BaseException:
    """Follow explicit ``raise ... from`` links down to the original error."""
    seen: set[int] = set()
    while error.__cause__ is not None and id(error) not in seen:
        seen.add(id(error))
        error = error.__cause__
    return error


class ErrorLogger:
    """De-duplicating error reporter bound to one automation session.

    Args:
        tag: Opaque session key; defaults to a random short id.
        expected: Exception types that are part of normal control flow and
            must never be logged.
    """

    def __init__(
        self,
        tag: str | None = None,
        expected: Iterable[type[BaseException]] = (),
    ) -> None:
        self.tag = tag or uuid4().hex[:8]
        self.logger = logging.getLogger(SESSION_LOGGER_PREFIX + self.tag)
        self._expected: list[type[BaseException]] = []
        # id -> instance; holding the instance keeps its id from being reused
        self._seen: dict[int, BaseException] = {}
        for error_type in expected:
            self.expect_error(error_type)

    def expect_error(self, error_type: type[BaseException]) -> None:
        """Register *error_type* as expected (never logged)."""
        if error_type not in self._expected:
            self._expected.append(error_type)

    def is_reportable(self, error: BaseException | None) -> bool:
        if error is None:
            return False
        return not isinstance(error, tuple(self._expected))

    def has_seen(self, error: BaseException) -> bool:
        return id(_root_cause(error)) in self._seen

    def clear(self) -> None:
        self._seen.clear()

    def report(self, failure: StepFailure) -> bool:
        """Log *failure*; return ``True`` when this was a full first report."""
        error = failure.error
        if not self.is_reportable(error):
            return False

        root = _root_cause(error)
        if id(root) not in self._seen:
            self._seen[id(root)] = root
            self.logger.error(
                "Got error doing %s!\n%s: %s",
                normalize_indent(failure.info),
                type(error).__name__,
                error,
            )
            return True

        self.logger.error("-> %s", summarize(failure.info))
        return False

    def wrap(self, options: PipelineOptions | None = None) -> PipelineOptions:
        """Return *options* with this logger as the error hook.

        A caller-supplied ``on_error`` is kept and left in charge.
        """
        options = options or PipelineOptions()
        if options.on_error is not None:
            return options
        return options.with_error_hook(self.report)

    def __repr__(self) -> str:
        return f"ErrorLogger(tag={self.tag!r}, seen={len(self._seen)})"
