"""WebRobot — one automation session over one browser driver.

The session owns the driver handle, its ``ErrorLogger`` and its
``FormFillEngine``; nothing is shared between sessions. Every multi-step
operation runs as a pipeline through :meth:`WebRobot.works`, so failures are
reported once in full per session and echoed on the way up.

Usage::

    async with launch(settings) as driver:
        robot = WebRobot(driver, settings, tag="signup")
        await robot.open("https://example.com/signup")
        await robot.fill_form(
            [FieldSpec(By.name("email"), "a@b.com")],
            By.xpath("//form[@id='signup']"),
            submit=By.xpath(".//button[@type='submit']"),
        )
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from webrobot.browser.driver import (
    BrowserDriver,
    ElementHandle,
    Locator,
    Target,
    find_element,
    find_elements,
)
from webrobot.exceptions import UnsupportedBrowserError
from webrobot.forms.engine import FormFillEngine
from webrobot.forms.models import FieldSpec, FormFillOptions, Submit
from webrobot.monitoring.error_logger import ErrorLogger
from webrobot.pipeline.executor import PipelineOptions, StepLike, run_pipeline
from webrobot.pipeline.models import Step
from webrobot.pipeline.queue import for_each_sequential
from webrobot.settings.config import SUPPORTED_BROWSERS, Settings, get_settings

logger = logging.getLogger(__name__)


class WebRobot:
    """A browser automation session.

    Args:
        driver: The browser driver; exclusively owned by this session.
        settings: Session configuration (defaults to ``get_settings()``).
        tag: Session key for the error logger; defaults to
            ``settings.browser.session`` or a random id.

    Raises:
        UnsupportedBrowserError: ``settings.browser.name`` is not supported.
    """

    def __init__(
        self,
        driver: BrowserDriver | None,
        settings: Settings | None = None,
        tag: str | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        browser = self.settings.browser
        if browser.name not in SUPPORTED_BROWSERS:
            raise UnsupportedBrowserError(browser.name, SUPPORTED_BROWSERS)

        self.url: str = browser.url
        self.timeout_ms: int = browser.timeout_ms
        self.wait_ms: int = browser.wait_ms
        self.opened = False
        self.errors = ErrorLogger(tag or browser.session or None)
        self._driver = driver
        self._forms: FormFillEngine | None = None

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @property
    def driver(self) -> BrowserDriver:
        if self._driver is None:
            raise RuntimeError("Session is closed; no browser driver attached")
        return self._driver

    @property
    def forms(self) -> FormFillEngine:
        if self._forms is None:
            self._forms = FormFillEngine(self.driver, self.errors, self.settings)
        return self._forms

    async def works(self, steps: Iterable[StepLike], options: PipelineOptions | None = None) -> Any:
        """Run *steps* as a pipeline reporting to this session's error logger."""
        return await run_pipeline(steps, self.errors.wrap(options))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self, url: str | None = None) -> None:
        """Navigate to *url* (default ``settings.browser.url``) once per session."""
        if self.opened and self._driver is not None:
            return
        target = url or self.url
        if not target:
            raise ValueError("No URL to open; pass one or set WEBROBOT_BROWSER__URL")

        def mark_open(r) -> None:
            self.opened = True
            self.url = target

        await self.works(
            [
                Step(lambda r: self.driver.get(target), label=f"open {target}"),
                Step(mark_open, label="mark opened"),
            ],
            PipelineOptions(label="open"),
        )
        logger.info("Opened %s", target)

    async def close(self) -> None:
        """Quit the driver and detach it from the session."""
        if self._driver is None:
            return

        def forget(r) -> None:
            self._driver = None
            self._forms = None
            self.opened = False

        await self.works(
            [
                Step(lambda r: self._driver.quit(), label="quit driver"),
                Step(forget, label="forget driver"),
            ],
            PipelineOptions(label="close"),
        )
        logger.info("Session %s closed", self.errors.tag)

    async def sleep(self, ms: int | None = None) -> None:
        await self.driver.sleep(self.wait_ms if ms is None else ms)

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    async def find_element(self, target: Target) -> ElementHandle:
        return await find_element(self.driver, target)

    async def find_elements(self, target: Target) -> list[ElementHandle]:
        return await find_elements(self.driver, target)

    async def click(self, target: Target) -> ElementHandle:
        """Locate *target*, click it and return the element."""
        return await self.works(
            [
                Step(lambda r: self.find_element(target), label=f"find {target}"),
                Step(lambda r: r[0].click(), label="click"),
                Step(lambda r: r[0], label="clicked element"),
            ],
            PipelineOptions(label=f"click {target}"),
        )

    async def wait_for(self, locator: Locator) -> ElementHandle:
        """Wait until *locator* is present, up to ``timeout_ms``."""
        return await self.works(
            [Step(lambda r: self.driver.wait_until_located(locator, self.timeout_ms), label=f"wait for {locator}")],
            PipelineOptions(label=f"wait for {locator}"),
        )

    async def wait_and_click(self, locator: Locator) -> ElementHandle:
        return await self.works(
            [
                Step(lambda r: self.wait_for(locator), label=f"wait for {locator}"),
                Step(lambda r: r[0].click(), label="click"),
                Step(lambda r: r[0], label="clicked element"),
            ],
            PipelineOptions(label=f"wait and click {locator}"),
        )

    async def get_text(self, items: Iterable[Locator], parent: ElementHandle | None = None) -> list[str]:
        """Return the ``innerText`` of each locator, in order."""
        result: list[str] = []

        async def read(item: Locator) -> None:
            text = await self.works(
                [
                    Step(
                        lambda r: parent.find_element(item) if parent is not None else self.driver.find_element(item),
                        label=f"find {item}",
                    ),
                    Step(lambda r: r[0].get_attribute("innerText"), label="read innerText"),
                ],
                PipelineOptions(label=f"text of {item}"),
            )
            result.append(text)

        await for_each_sequential(items, read)
        return result

    async def alert(self, message: str) -> Any:
        return await self.driver.execute_script(f"() => alert({json.dumps(message)})")

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    async def fill_form(
        self,
        fields: Iterable[FieldSpec],
        form: Locator,
        submit: Submit = None,
        options: FormFillOptions | None = None,
    ) -> ElementHandle:
        return await self.forms.fill_form(fields, form, submit, options)

    async def fill_field(self, spec: FieldSpec) -> None:
        await self.forms.fill_field(spec)

    async def get_form_values(
        self,
        form: ElementHandle | Locator,
        fields: Iterable[str],
        use_id: bool = False,
    ) -> dict[str, str | None]:
        return await self.forms.read_form_values(form, fields, use_id)

    def expect_error(self, error_type: type[BaseException]) -> None:
        """Never log *error_type* in this session (it is part of normal flow)."""
        self.errors.expect_error(error_type)
