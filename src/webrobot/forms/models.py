"""Form fill data models — field specifications, hooks and input kinds."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from webrobot.browser.driver import By, ElementHandle, Locator, Scoped, Target


class InputKind(str, Enum):
    """How a form control is filled, derived from its tag and ``type``."""

    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    TEXTAREA = "textarea"
    OTHER = "other"


def classify(tag_name: str | None, type_attr: str | None) -> InputKind:
    """Classify a control by tag name and ``type`` attribute. Pure function.

    ``select`` and ``textarea`` ignore the type; ``input`` is a checkbox or
    radio only for those exact types; everything else is ``OTHER``.
    """
    tag = (tag_name or "").lower()
    kind = (type_attr or "").lower()
    if tag == "select":
        return InputKind.SELECT
    if tag == "textarea":
        return InputKind.TEXTAREA
    if tag == "input":
        if kind == "checkbox":
            return InputKind.CHECKBOX
        if kind == "radio":
            return InputKind.RADIO
    return InputKind.OTHER


MaybeAwaitable = Union[Awaitable[Any], Any]


@dataclass
class FieldHooks:
    """Optional per-field callbacks. Each may be sync or async.

    Attributes:
        converter: ``(value) -> value`` producing the effective value.
        pre_fill: ``(element, value)`` called for side effects before filling.
        can_fill: ``(tag_name, element, value) -> bool``; a true result means
            the callback filled the field itself.
        on_fill: ``(element, value)`` replacing the built-in fill strategy.
        after_fill: ``(element, value)`` called after validation passed.
        done: ``(spec)`` called once the field succeeded, before the next one.
    """

    converter: Callable[[Any], Any] | None = None
    pre_fill: Callable[[ElementHandle, Any], MaybeAwaitable] | None = None
    can_fill: Callable[[str, ElementHandle, Any], MaybeAwaitable] | None = None
    on_fill: Callable[[ElementHandle, Any], MaybeAwaitable] | None = None
    after_fill: Callable[[ElementHandle, Any], MaybeAwaitable] | None = None
    done: Callable[[FieldSpec], MaybeAwaitable] | None = None


@dataclass
class FieldSpec:
    """One field to fill.

    ``parent`` scopes ``target``: a ``Locator`` is resolved to an element
    before filling, an element handle is used as is. When ``parent`` is
    unset and ``target`` is a relative XPath, the form element is used.

    ``el`` is written by the engine with the first matched element so that
    failures can be reported with an HTML snapshot.
    """

    target: Locator
    value: Any = None
    parent: Locator | ElementHandle | None = None
    optional: bool = False
    clear_using_key: bool | None = None
    wait: bool = False
    hooks: FieldHooks = field(default_factory=FieldHooks)
    el: ElementHandle | None = field(default=None, repr=False, compare=False)

    def scoped_target(self, parent: ElementHandle | None = None) -> Target:
        """``target`` scoped to *parent*, else to ``parent`` when that is an element."""
        scope = parent if parent is not None else self.parent
        if scope is not None and not isinstance(scope, Locator):
            return Scoped(scope, self.target)
        return self.target

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldSpec:
        """Build a ``FieldSpec`` from JSON-style data.

        ``target`` is either ``{"using": ..., "value": ...}`` or a bare
        XPath string; ``name``/``id`` shortcuts are accepted in its place.
        """
        if "name" in data:
            target = By.name(data["name"])
        elif "id" in data:
            target = By.id(data["id"])
        else:
            raw = data["target"]
            target = By.xpath(raw) if isinstance(raw, str) else Locator(raw["using"], raw["value"])
        return cls(
            target=target,
            value=data.get("value"),
            optional=bool(data.get("optional", False)),
            clear_using_key=data.get("clear_using_key"),
            wait=bool(data.get("wait", False)),
        )


@dataclass
class FormFillOptions:
    """Form-level options for ``FormFillEngine.fill_form``.

    Attributes:
        post_fill: ``(form_element)`` called after every field succeeded.
        delay_ms: Pause before submitting; ``None`` uses the configured
            ``form.submit_delay_ms``.
    """

    post_fill: Callable[[ElementHandle], MaybeAwaitable] | None = None
    delay_ms: int | None = None


Submit = Union[Locator, Callable[[ElementHandle], MaybeAwaitable], None]
