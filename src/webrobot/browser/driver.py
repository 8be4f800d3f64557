"""Browser collaborator interface — locators and the driver/element protocols.

Everything above this module talks to the browser only through
``BrowserDriver`` and ``ElementHandle``. ``webrobot.browser.playwright_driver``
implements them on Playwright; tests implement them on an in-memory DOM.

Locators are plain ``(using, value)`` pairs. A locator scoped to an element
is a ``Scoped`` value rather than a duck-typed dict, so "find relative to
this element" is a type, not a convention::

    By.name("email")                        # whole document
    Scoped(form_element, By.xpath(".//input"))   # under form_element
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable


@dataclass(frozen=True)
class Locator:
    """A strategy + value pair identifying DOM element(s)."""

    using: str
    value: str

    @property
    def is_relative(self) -> bool:
        """True for XPath expressions evaluated against a context node (``./``, ``.//``)."""
        return self.using == "xpath" and self.value.startswith(".")

    def __str__(self) -> str:
        return f"By.{self.using}({self.value!r})"


class By:
    """Locator factories, mirroring the WebDriver strategy names."""

    XPATH = "xpath"
    CSS = "css selector"
    ID = "id"
    NAME = "name"

    @staticmethod
    def xpath(value: str) -> Locator:
        return Locator(By.XPATH, value)

    @staticmethod
    def css(value: str) -> Locator:
        return Locator(By.CSS, value)

    @staticmethod
    def id(value: str) -> Locator:
        return Locator(By.ID, value)

    @staticmethod
    def name(value: str) -> Locator:
        return Locator(By.NAME, value)


@dataclass(frozen=True)
class Scoped:
    """A locator evaluated relative to a parent element."""

    parent: ElementHandle
    locator: Locator

    def __str__(self) -> str:
        return f"{self.locator} under {self.parent!r}"


Target = Union[Locator, Scoped]


def xpath_literal(text: str) -> str:
    """Quote *text* as an XPath 1.0 string literal (XPath has no escapes)."""
    if '"' not in text:
        return f'"{text}"'
    if "'" not in text:
        return f"'{text}'"
    parts = text.split('"')
    return "concat(" + ", '\"', ".join(f'"{p}"' for p in parts) + ")"


class Keys:
    """WebDriver special-key code points understood by ``send_keys``."""

    NULL = "\ue000"
    BACKSPACE = "\ue003"
    TAB = "\ue004"
    ENTER = "\ue007"
    SHIFT = "\ue008"
    CONTROL = "\ue009"
    ALT = "\ue00a"
    ESCAPE = "\ue00c"
    DELETE = "\ue017"
    COMMAND = "\ue03d"

    @staticmethod
    def chord(*keys: str) -> str:
        """Hold the given keys together, then release all modifiers."""
        return "".join(keys) + Keys.NULL


@runtime_checkable
class ElementHandle(Protocol):
    """Capabilities the engine needs from a located DOM element."""

    async def click(self) -> None: ...

    async def clear(self) -> None: ...

    async def send_keys(self, *keys: str) -> None: ...

    async def get_attribute(self, name: str) -> str | None:
        """WebDriver semantics: live properties first, boolean attributes as ``"true"``."""
        ...

    async def get_tag_name(self) -> str: ...

    async def is_selected(self) -> bool: ...

    async def is_enabled(self) -> bool:
        """Raises ``StaleElementError`` when the element has left the DOM."""
        ...

    async def find_element(self, locator: Locator) -> ElementHandle: ...

    async def find_elements(self, locator: Locator) -> list[ElementHandle]: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run ``script`` (a JS function taking ``(element, arg)``) in the page."""
        ...


@runtime_checkable
class BrowserDriver(Protocol):
    """Capabilities the engine needs from the browser session."""

    async def get(self, url: str) -> None: ...

    async def quit(self) -> None: ...

    async def find_element(self, locator: Locator) -> ElementHandle: ...

    async def find_elements(self, locator: Locator) -> list[ElementHandle]: ...

    async def execute_script(self, script: str, arg: Any = None) -> Any:
        """Run ``script`` (a JS function taking ``arg``) in the page."""
        ...

    async def wait_until_located(self, locator: Locator, timeout_ms: int) -> ElementHandle:
        """Poll for *locator*; raise ``WaitTimeoutError`` after *timeout_ms*."""
        ...

    async def wait_until_visible(self, element: ElementHandle, timeout_ms: int) -> ElementHandle: ...

    async def sleep(self, ms: int) -> None: ...


async def find_elements(driver: BrowserDriver, target: Target) -> list[ElementHandle]:
    """Locate all matches of *target*, honouring ``Scoped`` parents."""
    if isinstance(target, Scoped):
        return await target.parent.find_elements(target.locator)
    return await driver.find_elements(target)


async def find_element(driver: BrowserDriver, target: Target) -> ElementHandle:
    """Locate the first match of *target*, honouring ``Scoped`` parents."""
    if isinstance(target, Scoped):
        return await target.parent.find_element(target.locator)
    return await driver.find_element(target)
