"""Form fill engine — classify each field and apply the matching fill strategy.

A form fill is a pipeline of its own (wait for the form, fill every field,
submit), and every field is filled by one more pipeline run from a
``SequentialQueue``, so fields are handled strictly one at a time. The
per-field pipeline is a flat list of guarded steps:

 0. locate the target (scoped to its parent)
 1. fail with ``ElementNotFoundError`` when nothing matched and the field
    is not optional; every later step is skipped for an optional miss
 2-4. read tag names and ``type`` attributes, classify every match
 5. fail with ``MultipleElementsFoundError`` for several non-radio matches
 6. apply ``converter``
 7. ``pre_fill`` hook
 8. ``can_fill`` / ``on_fill`` hooks; decides whether a built-in runs
 9-13. built-in strategy for select, checkbox, radio, textarea, other
 14. staleness check of every match
 15. required-field validation of non-checkbox, non-stale matches
 16. ``after_fill`` hook

Failures are annotated with a truncated HTML snapshot of the element and
always propagate: there is no partial-success mode for a form.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from webrobot.browser.driver import (
    BrowserDriver,
    By,
    ElementHandle,
    Keys,
    Locator,
    Scoped,
    find_element,
    find_elements,
    xpath_literal,
)
from webrobot.browser.html_truncate import truncate_html
from webrobot.exceptions import (
    ElementNotFoundError,
    FillValueMismatchError,
    MultipleElementsFoundError,
    RequiredFieldEmptyError,
    StaleElementError,
    WebRobotError,
)
from webrobot.forms.models import FieldSpec, FormFillOptions, InputKind, Submit, classify
from webrobot.monitoring.error_logger import ErrorLogger
from webrobot.pipeline.executor import PipelineOptions, StepLike, fail, maybe_await, run_pipeline
from webrobot.pipeline.models import Step
from webrobot.pipeline.queue import for_each_sequential
from webrobot.settings.config import Settings, get_settings

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on", "checked"}

# Appends text to the element's value and tells listeners about it, without
# any key events reaching the page.
_APPEND_VALUE_JS = """
(el, text) => {
    el.value = (el.value || '') + text;
    el.dispatchEvent(new Event('change', {bubbles: true}));
}
"""


def as_bool(value: Any) -> bool:
    """Desired checkbox state for a field value (``"on"``, ``"1"``, ``True``, ...)."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _found(r) -> bool:
    return bool(r[0])


class FormFillEngine:
    """Fills forms through a ``BrowserDriver``.

    Args:
        driver: The session's browser driver.
        errors: Error logger for pipeline failures; one per session.
        settings: Defaults for timeouts, waits and fill behaviour.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        errors: ErrorLogger | None = None,
        settings: Settings | None = None,
    ) -> None:
        s = settings or get_settings()
        self._driver = driver
        self.errors = errors or ErrorLogger()
        self.timeout_ms: int = s.browser.timeout_ms
        self.wait_ms: int = s.browser.wait_ms
        self.slash_safe: bool = s.form.slash_safe
        self.clear_using_key: bool = s.form.clear_using_key
        self.snippet_length: int = s.form.snippet_length
        self.submit_delay_ms: int = s.form.submit_delay_ms

    async def _works(self, steps: Iterable[StepLike], label: str) -> Any:
        return await run_pipeline(steps, self.errors.wrap(PipelineOptions(label=label)))

    # ------------------------------------------------------------------
    # Form
    # ------------------------------------------------------------------

    async def fill_form(
        self,
        fields: Iterable[FieldSpec],
        form: Locator,
        submit: Submit = None,
        options: FormFillOptions | None = None,
    ) -> ElementHandle:
        """Fill *fields* in order inside *form*, then optionally submit.

        Args:
            fields: Field specifications, filled strictly one at a time.
            form: Locator of the form element; waited for until located
                and visible.
            submit: A locator to click, a ``(form_element)`` callable, or
                ``None`` to leave the form unsubmitted.
            options: Post-fill callback and submit delay.

        Returns:
            The clicked submit element when *submit* is a locator, otherwise
            the form element.
        """
        options = options or FormFillOptions()
        delay = self.submit_delay_ms if options.delay_ms is None else options.delay_ms
        fields = list(fields)
        click_submit = isinstance(submit, Locator)
        call_submit = submit is not None and not click_submit

        return await self._works(
            [
                Step(lambda r: self._driver.wait_until_located(form, self.timeout_ms), label=f"wait for {form}"),
                Step(lambda r: self._driver.wait_until_visible(r[0], self.timeout_ms), label="wait until form visible"),
                Step(lambda r: for_each_sequential(fields, lambda spec: self._fill_queued(spec, r[0])), label="fill fields"),
                Step(lambda r: options.post_fill(r[0]), lambda r: options.post_fill is not None, "post-fill callback"),
                Step(lambda r: self._driver.sleep(delay), lambda r: submit is not None and delay > 0, "submit delay"),
                Step(lambda r: submit(r[0]), lambda r: call_submit, "submit callback"),
                Step(lambda r: self._click_submit(submit, r[0]), lambda r: click_submit, f"click {submit}"),
                Step(lambda r: r[6] if click_submit else r[0], label="form result"),
            ],
            label=f"fill form {form}",
        )

    async def _click_submit(self, submit: Locator, form_el: ElementHandle) -> ElementHandle:
        target = Scoped(form_el, submit) if submit.is_relative else submit
        button = await find_element(self._driver, target)
        await button.click()
        return button

    async def _fill_queued(self, spec: FieldSpec, form_el: ElementHandle) -> None:
        parent = form_el if spec.parent is None and spec.target.is_relative else None
        await self._works(
            [
                Step(lambda r: self._driver.sleep(self.wait_ms), lambda r: spec.wait, "pre-fill wait"),
                Step(lambda r: self.fill_field(spec, parent), label=f"fill {spec.target}"),
            ],
            label=f"queue {spec.target}",
        )
        if spec.hooks.done is not None:
            await maybe_await(spec.hooks.done(spec))

    async def _locate(self, spec: FieldSpec, parent: ElementHandle | None) -> list[ElementHandle]:
        # spec.parent belongs to the caller; a Locator parent is resolved per fill
        if parent is None and isinstance(spec.parent, Locator):
            parent = await self._driver.find_element(spec.parent)
        return await find_elements(self._driver, spec.scoped_target(parent))

    # ------------------------------------------------------------------
    # Field
    # ------------------------------------------------------------------

    async def fill_field(self, spec: FieldSpec, parent: ElementHandle | None = None) -> None:
        """Fill one field; see the module docstring for the step sequence.

        *parent* scopes a relative target for this call only and takes
        precedence over ``spec.parent``.

        Raises:
            ElementNotFoundError: nothing matched a non-optional field.
            MultipleElementsFoundError: several matches for a non-radio field.
            RequiredFieldEmptyError: a required field is still empty.
            FillValueMismatchError: slash-safe typing did not stick.
        """
        try:
            await self._works(self._field_steps(spec, parent), label=f"fill {spec.target}")
        except Exception as exc:
            context = await self.describe(spec)
            exc.add_note(f"while filling {context}")
            logger.error("Unable to fill form value %s: %s!", context, exc)
            raise

    def _field_steps(self, spec: FieldSpec, parent: ElementHandle | None) -> list[Step]:
        hooks = spec.hooks
        clear_using_key = self.clear_using_key if spec.clear_using_key is None else spec.clear_using_key

        def builtin(kind: InputKind):
            return lambda r: _found(r) and r[8] and r[4][0] is kind

        return [
            Step(lambda r: self._locate(spec, parent), label="locate"),
            Step(
                lambda r: fail(ElementNotFoundError(spec.target)),
                lambda r: not r[0] and not spec.optional,
                "element not found",
            ),
            Step(lambda r: self._bind(spec, r[0]), _found, "read tag names"),
            Step(lambda r: self._read_all(r[0], "type"), _found, "read types"),
            Step(lambda r: [classify(tag, kind) for tag, kind in zip(r[2], r[3])], _found, "classify"),
            Step(
                lambda r: fail(MultipleElementsFoundError(spec.target, len(r[0]))),
                lambda r: len(r[0]) > 1 and any(kind is not InputKind.RADIO for kind in r[4]),
                "multiple elements found",
            ),
            Step(
                lambda r: hooks.converter(spec.value) if hooks.converter is not None else spec.value,
                _found,
                "convert value",
            ),
            Step(lambda r: hooks.pre_fill(r[0][0], r[6]), lambda r: _found(r) and hooks.pre_fill is not None, "pre_fill"),
            Step(lambda r: self._custom_fill(spec, r[2][0], r[0][0], r[6]), _found, "custom fill"),
            Step(lambda r: self.fill_select(r[0][0], r[6]), builtin(InputKind.SELECT), "fill select"),
            Step(lambda r: self.fill_checkbox(r[0][0], r[6]), builtin(InputKind.CHECKBOX), "fill checkbox"),
            Step(lambda r: self.fill_radio(r[0], r[6]), builtin(InputKind.RADIO), "fill radio"),
            Step(
                lambda r: self.fill_textarea(r[0][0], r[6], clear_using_key),
                builtin(InputKind.TEXTAREA),
                "fill textarea",
            ),
            Step(lambda r: self.fill_input(r[0][0], r[6], clear_using_key), builtin(InputKind.OTHER), "fill input"),
            Step(lambda r: self._stale_flags(r[0]), _found, "staleness check"),
            Step(lambda r: self._check_required(spec, r[0], r[4], r[14]), _found, "required check"),
            Step(
                lambda r: hooks.after_fill(r[0][0], r[6]),
                lambda r: _found(r) and hooks.after_fill is not None,
                "after_fill",
            ),
        ]

    async def _bind(self, spec: FieldSpec, elements: list[ElementHandle]) -> list[str]:
        spec.el = elements[0]
        return [await el.get_tag_name() for el in elements]

    @staticmethod
    async def _read_all(elements: list[ElementHandle], name: str) -> list[str | None]:
        return [await el.get_attribute(name) for el in elements]

    @staticmethod
    async def _custom_fill(spec: FieldSpec, tag: str, el: ElementHandle, value: Any) -> bool:
        """Run ``can_fill`` / ``on_fill``; return ``True`` when the built-in fill should run."""
        hooks = spec.hooks
        if hooks.can_fill is not None and await maybe_await(hooks.can_fill(tag, el, value)):
            return False
        if hooks.on_fill is not None:
            await maybe_await(hooks.on_fill(el, value))
            return False
        return True

    async def _stale_flags(self, elements: list[ElementHandle]) -> list[bool]:
        return [await self.is_stale(el) for el in elements]

    @staticmethod
    async def is_stale(el: ElementHandle) -> bool:
        """True when *el* no longer backs a DOM node (e.g. a widget replaced itself)."""
        try:
            await el.is_enabled()
        except StaleElementError:
            return True
        return False

    @staticmethod
    async def _check_required(
        spec: FieldSpec,
        elements: list[ElementHandle],
        kinds: list[InputKind],
        stale: list[bool],
    ) -> None:
        for el, kind, is_stale in zip(elements, kinds, stale):
            if kind is InputKind.CHECKBOX or is_stale:
                continue
            required = await el.get_attribute("required")
            value = await el.get_attribute("value")
            if required == "true" and not value:
                raise RequiredFieldEmptyError(spec.target)

    # ------------------------------------------------------------------
    # Built-in strategies
    # ------------------------------------------------------------------

    async def fill_select(self, el: ElementHandle, value: Any) -> ElementHandle:
        """Click the ``<option>`` whose ``value`` attribute equals *value*."""
        option = await el.find_element(By.xpath(f".//option[@value={xpath_literal(str(value))}]"))
        await option.click()
        return option

    async def fill_checkbox(self, el: ElementHandle, value: Any) -> bool:
        """Click only when the checked state differs from *value*; return whether it clicked."""
        if await el.is_selected() == as_bool(value):
            return False
        await el.click()
        return True

    async def fill_radio(self, elements: list[ElementHandle], value: Any) -> int:
        """Click the radio whose own ``value`` equals *value*; return the click count.

        A value matching no radio clicks nothing and is not an error.
        """
        wanted = str(value)
        clicked = 0
        for el in elements:
            if await el.get_attribute("value") == wanted:
                await el.click()
                clicked += 1
        if not clicked:
            logger.debug("No radio with value %r among %d element(s)", wanted, len(elements))
        return clicked

    async def fill_textarea(self, el: ElementHandle, value: Any, clear_using_key: bool = False) -> None:
        """Clear then type; values containing ``/`` use slash-safe typing.

        Raises:
            FillValueMismatchError: the value read back after slash-safe
                typing differs from *value*.
        """
        await self._clear(el, clear_using_key)
        if value is None:
            return
        text = str(value)
        if not (self.slash_safe and "/" in text):
            await el.send_keys(text)
            return
        await self.type_slash_safe(el, text)
        actual = await el.get_attribute("value")
        if actual != text:
            raise FillValueMismatchError(text, actual)

    async def fill_input(self, el: ElementHandle, value: Any, clear_using_key: bool = False) -> None:
        """Clear then type *value* (text, number, password, ...)."""
        await self._clear(el, clear_using_key)
        if value is not None:
            await el.send_keys(str(value))

    @staticmethod
    async def _clear(el: ElementHandle, clear_using_key: bool) -> None:
        if clear_using_key:
            # rich text areas in some engines ignore the plain clear action
            await el.send_keys(Keys.chord(Keys.CONTROL, "a"), Keys.DELETE)
        else:
            await el.clear()

    @staticmethod
    async def type_slash_safe(el: ElementHandle, text: str) -> None:
        """Type *text* with native keys, injecting each ``/`` through script.

        A ``/`` sent as a key event can trigger browser autocomplete or
        quick-find instead of reaching the field.
        """
        for i, segment in enumerate(text.split("/")):
            if i:
                await el.evaluate(_APPEND_VALUE_JS, "/")
            if segment:
                await el.send_keys(segment)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    async def read_form_values(
        self,
        form: ElementHandle | Locator,
        field_names: Iterable[str],
        use_id: bool = False,
    ) -> dict[str, str | None]:
        """Read the current value of each named field inside *form*.

        Checkboxes report their ``checked`` state, other controls their
        ``value``. Fields that cannot be found are left out of the result.
        """
        form_el = await self._driver.find_element(form) if isinstance(form, Locator) else form
        values: dict[str, str | None] = {}

        async def read(name: str) -> None:
            locator = By.id(name) if use_id else By.xpath(f".//*[@name={xpath_literal(name)}]")
            try:
                value = await run_pipeline(
                    [
                        Step(lambda r: form_el.find_element(locator), label=f"find {name}"),
                        Step(lambda r: r[0].get_attribute("type"), label="read type"),
                        Step(lambda r: r[0].get_attribute("checked" if r[1] == "checkbox" else "value")),
                    ],
                    PipelineOptions(label=f"read {name}"),
                )
            except WebRobotError as exc:
                logger.debug("Skipping form value %s: %s", name, exc)
                return
            values[name] = value

        await for_each_sequential(field_names, read)
        return values

    async def describe(self, spec: FieldSpec) -> str:
        """A truncated outerHTML snapshot of the bound element, else the raw target."""
        if spec.el is not None:
            try:
                html = await spec.el.get_attribute("outerHTML")
            except Exception as exc:
                logger.debug("outerHTML snapshot failed for %s: %s", spec.target, exc)
            else:
                if html:
                    return truncate_html(html, self.snippet_length)
        return str(spec.target)
