"""WebRobot test configuration — shared fixtures and an in-memory DOM."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from webrobot.browser.driver import By, Keys, Locator, xpath_literal
from webrobot.exceptions import ElementNotFoundError, StaleElementError, WaitTimeoutError

_BOOLEAN_ATTRIBUTES = ("required", "checked", "selected", "disabled")
_VALUE_TAGS = ("input", "textarea", "select", "option")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from webrobot.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Undo handlers installed by configure_logging (the CLI callback calls it)."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def settings():
    """Settings with no pre-fill waits so queue tests stay fast."""
    from webrobot.settings.config import Settings

    return Settings(browser={"wait_ms": 0, "timeout_ms": 500})


# ---------------------------------------------------------------------------
# In-memory DOM
# ---------------------------------------------------------------------------


class FakeElement:
    """``ElementHandle`` backed by plain attributes.

    ``get_attribute`` follows WebDriver semantics: boolean attributes read
    as ``"true"`` or ``None`` and ``value`` is the live value. Child lookups
    are registered explicitly with :meth:`add`.

    Attributes:
        detach_on_keys: Become stale after the next ``send_keys``, like a
            widget that replaces its own node while typing.
        drop_slashes: Ignore script-injected text, so slash-safe typing
            reads back a different value.
    """

    def __init__(
        self,
        tag: str = "input",
        *,
        type: str | None = None,
        name: str | None = None,
        value: str = "",
        required: bool = False,
        checked: bool = False,
        options: tuple[str, ...] = (),
    ) -> None:
        self.tag = tag
        self.attrs: dict[str, str] = {}
        if type is not None:
            self.attrs["type"] = type
        if name is not None:
            self.attrs["name"] = name
        self.value = value
        self.required = required
        self.checked = checked
        self.stale = False
        self.detach_on_keys = False
        self.drop_slashes = False
        self.clicks = 0
        self.cleared = 0
        self.keys: list[str] = []
        self.scripts: list[tuple[str, Any]] = []
        self.parent: FakeElement | None = None
        self.children: dict[Locator, list[FakeElement]] = {}
        for option in options:
            self.add(
                By.xpath(f".//option[@value={xpath_literal(option)}]"),
                FakeElement("option", value=option),
            )

    def add(self, locator: Locator, *elements: FakeElement) -> FakeElement:
        for el in elements:
            el.parent = self
        self.children.setdefault(locator, []).extend(elements)
        return self

    def _check(self) -> None:
        if self.stale:
            raise StaleElementError("element is not attached to the DOM")

    async def click(self) -> None:
        self._check()
        self.clicks += 1
        kind = self.attrs.get("type")
        if kind == "checkbox":
            self.checked = not self.checked
        elif kind == "radio":
            self.checked = True
        elif self.tag == "option" and self.parent is not None:
            self.parent.value = self.value

    async def clear(self) -> None:
        self._check()
        self.cleared += 1
        self.value = ""

    async def send_keys(self, *keys: str) -> None:
        self._check()
        text = "".join(keys)
        self.keys.append(text)
        if Keys.chord(Keys.CONTROL, "a") in text and Keys.DELETE in text:
            self.value = ""
        else:
            self.value += "".join(c for c in text if not "\ue000" <= c <= "\uf8ff")
        if self.detach_on_keys:
            self.stale = True

    async def get_attribute(self, name: str) -> str | None:
        self._check()
        if name in _BOOLEAN_ATTRIBUTES:
            return "true" if getattr(self, name, False) else None
        if name == "value" and self.tag in _VALUE_TAGS:
            return self.value
        if name == "outerHTML":
            return self.outer_html()
        return self.attrs.get(name)

    async def get_tag_name(self) -> str:
        self._check()
        return self.tag

    async def is_selected(self) -> bool:
        self._check()
        return self.checked

    async def is_enabled(self) -> bool:
        self._check()
        return True

    async def find_element(self, locator: Locator) -> FakeElement:
        matches = await self.find_elements(locator)
        if not matches:
            raise ElementNotFoundError(locator)
        return matches[0]

    async def find_elements(self, locator: Locator) -> list[FakeElement]:
        self._check()
        return list(self.children.get(locator, []))

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self._check()
        self.scripts.append((script, arg))
        if "el.value" in script and arg is not None and not self.drop_slashes:
            self.value += str(arg)
        return None

    def outer_html(self) -> str:
        attrs = "".join(f' {k}="{v}"' for k, v in self.attrs.items())
        if self.required:
            attrs += " required"
        if self.tag == "input":
            return f'<input{attrs} value="{self.value}">'
        return f"<{self.tag}{attrs}>{self.value}</{self.tag}>"

    def __repr__(self) -> str:
        return f"FakeElement({self.tag!r}, {self.attrs!r})"


class FakeDriver:
    """``BrowserDriver`` over a locator → elements table."""

    def __init__(self) -> None:
        self.elements: dict[Locator, list[FakeElement]] = {}
        self.urls: list[str] = []
        self.scripts: list[tuple[str, Any]] = []
        self.sleeps: list[int] = []
        self.quit_called = False

    def add(self, locator: Locator, *elements: FakeElement) -> FakeDriver:
        self.elements.setdefault(locator, []).extend(elements)
        return self

    async def get(self, url: str) -> None:
        self.urls.append(url)

    async def quit(self) -> None:
        self.quit_called = True

    async def find_element(self, locator: Locator) -> FakeElement:
        matches = await self.find_elements(locator)
        if not matches:
            raise ElementNotFoundError(locator)
        return matches[0]

    async def find_elements(self, locator: Locator) -> list[FakeElement]:
        return list(self.elements.get(locator, []))

    async def execute_script(self, script: str, arg: Any = None) -> Any:
        self.scripts.append((script, arg))
        return None

    async def wait_until_located(self, locator: Locator, timeout_ms: int) -> FakeElement:
        matches = self.elements.get(locator)
        if not matches:
            raise WaitTimeoutError(locator, timeout_ms)
        return matches[0]

    async def wait_until_visible(self, element: FakeElement, timeout_ms: int) -> FakeElement:
        return element

    async def sleep(self, ms: int) -> None:
        self.sleeps.append(ms)


@pytest.fixture()
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture()
def make_element():
    """Factory for ``FakeElement`` instances."""
    return FakeElement


@pytest.fixture()
def form(fake_driver: FakeDriver) -> FakeElement:
    """An empty ``<form id="f">`` registered under ``By.id("f")``."""
    el = FakeElement("form")
    fake_driver.add(By.id("f"), el)
    return el


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that need a real browser")
