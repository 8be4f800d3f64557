"""WebRobot-specific exception hierarchy."""

from __future__ import annotations

from typing import Any


class WebRobotError(Exception):
    """Base exception for all WebRobot-specific errors."""


class ConfigurationError(WebRobotError):
    """Raised when the session configuration is unusable. Never retried."""


class UnsupportedBrowserError(ConfigurationError):
    """Raised at construction when the configured browser is not supported.

    Attributes:
        browser: The configured browser name.
        supported: The browser names this build knows how to drive.
    """

    def __init__(self, browser: str, supported: tuple[str, ...]) -> None:
        self.browser = browser
        self.supported = supported
        super().__init__(
            f"Unsupported browser {browser!r}, supported browsers: {', '.join(supported)}"
        )


class PipelineContractError(WebRobotError):
    """Raised when a step reads a result index that has not been written yet."""

    def __init__(self, index: int, available: int) -> None:
        self.index = index
        self.available = available
        super().__init__(
            f"Result #{index} requested but only {available} step result(s) are available"
        )


class ElementNotFoundError(WebRobotError):
    """Raised when a required (non-optional) locator matches nothing."""

    def __init__(self, target: Any) -> None:
        self.target = target
        super().__init__(f"Element not found: {target}")


class MultipleElementsFoundError(WebRobotError):
    """Raised when a non-radio field locator matches more than one element."""

    def __init__(self, target: Any, count: int) -> None:
        self.target = target
        self.count = count
        super().__init__(f"Multiple elements found ({count}): {target}")


class RequiredFieldEmptyError(WebRobotError):
    """Raised when a required field is still empty after it was filled."""

    def __init__(self, target: Any) -> None:
        self.target = target
        super().__init__(f"Required field is empty after fill: {target}")


class FillValueMismatchError(WebRobotError):
    """Raised when the value read back from a field differs from the typed one.

    Attributes:
        expected: The value that was typed.
        actual: The value the element reports afterwards.
    """

    def __init__(self, expected: str, actual: str | None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Filled value mismatch: expected {expected!r}, got {actual!r}")


class StaleElementError(WebRobotError):
    """Raised by drivers when an element handle no longer backs a DOM node."""


class WaitTimeoutError(WebRobotError):
    """Raised when an explicit wait does not succeed within its timeout."""

    def __init__(self, what: Any, timeout_ms: int) -> None:
        self.what = what
        self.timeout_ms = timeout_ms
        super().__init__(f"Timed out after {timeout_ms}ms waiting for {what}")
