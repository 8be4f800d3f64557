"""Playwright implementation of the browser collaborator protocols.

Maps WebDriver-style locators and element operations onto Playwright's async
API, and translates Playwright failures into the WebRobot taxonomy:

* a handle whose node left the DOM → ``StaleElementError``
* an explicit wait running out → ``WaitTimeoutError``

``get_attribute`` deliberately follows WebDriver rather than Playwright
semantics (live ``value`` property, boolean attributes read as ``"true"``),
because the form engine's required-field check is written against them.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from webrobot.browser.driver import By, Keys, Locator
from webrobot.exceptions import (
    ElementNotFoundError,
    StaleElementError,
    UnsupportedBrowserError,
    WaitTimeoutError,
)

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle as PlaywrightHandle, Page

    from webrobot.settings.config import Settings

logger = logging.getLogger(__name__)

# Playwright error substrings meaning the handle no longer backs a live node.
_STALE_ERRORS: tuple[str, ...] = (
    "not attached to the DOM",
    "Element is detached",
    "JSHandle is disposed",
    "Execution context was destroyed",
)

_MODIFIERS: dict[str, str] = {
    Keys.SHIFT: "Shift",
    Keys.CONTROL: "Control",
    Keys.ALT: "Alt",
    Keys.COMMAND: "Meta",
}

_SPECIAL_KEYS: dict[str, str] = {
    Keys.BACKSPACE: "Backspace",
    Keys.TAB: "Tab",
    Keys.ENTER: "Enter",
    Keys.ESCAPE: "Escape",
    Keys.DELETE: "Delete",
}

_GET_ATTRIBUTE_JS = """
(el, name) => {
    const booleans = ['required', 'checked', 'selected', 'disabled', 'readonly', 'multiple', 'autofocus'];
    if (booleans.includes(name.toLowerCase())) {
        return (el.hasAttribute(name) || el[name] === true) ? 'true' : null;
    }
    if (name === 'value' && 'value' in el) {
        return el.value == null ? null : String(el.value);
    }
    if (['outerHTML', 'innerHTML', 'innerText', 'textContent'].includes(name)) {
        return el[name];
    }
    return el.getAttribute(name);
}
"""


def to_selector(locator: Locator) -> str:
    """Translate a WebDriver-style locator into a Playwright selector string."""
    if locator.using == By.XPATH:
        return f"xpath={locator.value}"
    if locator.using == By.CSS:
        return f"css={locator.value}"
    if locator.using == By.ID:
        return f"id={locator.value}"
    if locator.using == By.NAME:
        return f"css=[name={json.dumps(locator.value)}]"
    raise ValueError(f"Unsupported locator strategy: {locator.using!r}")


def _is_stale(exc: PlaywrightError) -> bool:
    message = str(exc)
    return any(pattern in message for pattern in _STALE_ERRORS)


def split_keys(keys: tuple[str, ...]) -> list[tuple[str, str]]:
    """Turn WebDriver key sequences into ``("type", text)`` / ``("press", combo)`` ops.

    Modifier code points are held until ``Keys.NULL``; anything pressed while
    a modifier is held becomes a ``Control+a``-style chord.
    """
    ops: list[tuple[str, str]] = []
    held: list[str] = []
    buffer = ""

    def flush() -> None:
        nonlocal buffer
        if buffer:
            ops.append(("type", buffer))
            buffer = ""

    for char in "".join(keys):
        if char == Keys.NULL:
            flush()
            held.clear()
        elif char in _MODIFIERS:
            flush()
            held.append(_MODIFIERS[char])
        elif char in _SPECIAL_KEYS or held:
            flush()
            ops.append(("press", "+".join([*held, _SPECIAL_KEYS.get(char, char)])))
        else:
            buffer += char
    flush()
    return ops


class PlaywrightElement:
    """``ElementHandle`` over a Playwright element handle."""

    def __init__(self, handle: PlaywrightHandle) -> None:
        self._handle = handle

    @property
    def handle(self) -> PlaywrightHandle:
        return self._handle

    async def _call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        try:
            return await getattr(self._handle, method)(*args, **kwargs)
        except PlaywrightError as exc:
            if _is_stale(exc):
                raise StaleElementError(str(exc)) from exc
            raise

    async def click(self) -> None:
        """Click the element; an ``<option>`` is chosen through its ``<select>`` instead."""
        if await self.get_tag_name() == "option":
            select = (await self._call("evaluate_handle", "el => el.closest('select')")).as_element()
            if select is not None:
                value = await self._call("evaluate", "el => el.value")
                await PlaywrightElement(select)._call("select_option", value=value)
                return
        await self._call("click")

    async def clear(self) -> None:
        await self._call("fill", "")

    async def send_keys(self, *keys: str) -> None:
        for op, text in split_keys(keys):
            if op == "type":
                await self._call("type", text)
            else:
                await self._call("press", text)

    async def get_attribute(self, name: str) -> str | None:
        return await self._call("evaluate", _GET_ATTRIBUTE_JS, name)

    async def get_tag_name(self) -> str:
        return await self._call("evaluate", "el => el.tagName.toLowerCase()")

    async def is_selected(self) -> bool:
        return bool(await self._call("evaluate", "el => !!(el.checked || el.selected)"))

    async def is_enabled(self) -> bool:
        return await self._call("is_enabled")

    async def find_element(self, locator: Locator) -> PlaywrightElement:
        handle = await self._call("query_selector", to_selector(locator))
        if handle is None:
            raise ElementNotFoundError(locator)
        return PlaywrightElement(handle)

    async def find_elements(self, locator: Locator) -> list[PlaywrightElement]:
        handles = await self._call("query_selector_all", to_selector(locator))
        return [PlaywrightElement(h) for h in handles]

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._call("evaluate", script, arg)

    def __repr__(self) -> str:
        return f"PlaywrightElement({self._handle!r})"


class PlaywrightDriver:
    """``BrowserDriver`` over one Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def page(self) -> Page:
        return self._page

    async def get(self, url: str) -> None:
        logger.debug("goto %s", url)
        await self._page.goto(url)

    async def quit(self) -> None:
        await self._page.context.close()

    async def find_element(self, locator: Locator) -> PlaywrightElement:
        handle = await self._page.query_selector(to_selector(locator))
        if handle is None:
            raise ElementNotFoundError(locator)
        return PlaywrightElement(handle)

    async def find_elements(self, locator: Locator) -> list[PlaywrightElement]:
        handles = await self._page.query_selector_all(to_selector(locator))
        return [PlaywrightElement(h) for h in handles]

    async def execute_script(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    async def wait_until_located(self, locator: Locator, timeout_ms: int) -> PlaywrightElement:
        try:
            handle = await self._page.wait_for_selector(
                to_selector(locator), state="attached", timeout=timeout_ms
            )
        except PlaywrightTimeout as exc:
            raise WaitTimeoutError(locator, timeout_ms) from exc
        if handle is None:
            raise ElementNotFoundError(locator)
        return PlaywrightElement(handle)

    async def wait_until_visible(self, element: PlaywrightElement, timeout_ms: int) -> PlaywrightElement:
        try:
            await element.handle.wait_for_element_state("visible", timeout=timeout_ms)
        except PlaywrightTimeout as exc:
            raise WaitTimeoutError(f"{element!r} to become visible", timeout_ms) from exc
        return element

    async def sleep(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000)


_BROWSER_TYPES: dict[str, tuple[str, str | None]] = {
    "chromium": ("chromium", None),
    "chrome": ("chromium", "chrome"),
    "firefox": ("firefox", None),
    "webkit": ("webkit", None),
}


@asynccontextmanager
async def launch(settings: Settings) -> AsyncIterator[PlaywrightDriver]:
    """Start a browser for *settings* and yield a driver bound to a fresh page."""
    from playwright.async_api import async_playwright

    name = settings.browser.name
    if name not in _BROWSER_TYPES:
        raise UnsupportedBrowserError(name, tuple(_BROWSER_TYPES))
    engine, channel = _BROWSER_TYPES[name]

    async with async_playwright() as pw:
        launcher = getattr(pw, engine)
        launch_kwargs: dict[str, Any] = {"headless": settings.browser.headless}
        if channel:
            launch_kwargs["channel"] = channel
        if settings.browser.download_dir:
            launch_kwargs["downloads_path"] = settings.browser.download_dir
        browser = await launcher.launch(**launch_kwargs)
        logger.info("Browser started (%s, headless=%s)", name, settings.browser.headless)
        try:
            context = await browser.new_context(accept_downloads=bool(settings.browser.download_dir))
            page = await context.new_page()
            yield PlaywrightDriver(page)
        finally:
            await browser.close()
            logger.info("Browser stopped")
