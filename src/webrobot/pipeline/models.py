"""Step and result-register models for the step pipeline.

A pipeline run owns one ``ResultRegister``. Every step writes exactly one
slot, either its action's result or the ``SKIPPED`` marker when its guard
said no, so slot *i* always belongs to step *i*. Guards and actions only
ever see a ``ResultView`` over the slots written before them.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Any, Union

from webrobot.exceptions import PipelineContractError


class _Skipped:
    """Marker written in place of a result when a step's guard is false."""

    _instance: _Skipped | None = None

    def __new__(cls) -> _Skipped:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SKIPPED"

    def __bool__(self) -> bool:
        return False


SKIPPED = _Skipped()


class ResultView:
    """Read-only window over the first ``len(self)`` slots of a register.

    Indexing past the window raises ``PipelineContractError`` instead of
    ``IndexError``: a step asking for a result that does not exist yet is a
    bug in the step list, not a runtime condition.
    """

    __slots__ = ("_slots", "_limit")

    def __init__(self, slots: list[Any], limit: int) -> None:
        self._slots = slots
        self._limit = limit

    def __len__(self) -> int:
        return self._limit

    def __getitem__(self, index: int) -> Any:
        if index < 0:
            index += self._limit
        if not 0 <= index < self._limit:
            raise PipelineContractError(index, self._limit)
        return self._slots[index]

    def __iter__(self) -> Iterator[Any]:
        for i in range(self._limit):
            yield self._slots[i]

    def get(self, index: int, default: Any = None) -> Any:
        """Return slot *index*, or *default* if that step was skipped."""
        value = self[index]
        return default if value is SKIPPED else value

    def is_skipped(self, index: int) -> bool:
        return self[index] is SKIPPED

    @property
    def last(self) -> Any:
        """The most recent non-skipped result, or ``None``."""
        for i in range(self._limit - 1, -1, -1):
            if self._slots[i] is not SKIPPED:
                return self._slots[i]
        return None

    def __repr__(self) -> str:
        return f"ResultView({self._slots[: self._limit]!r})"


class ResultRegister:
    """Append-only, index-addressed store of step outcomes for one run."""

    __slots__ = ("_slots",)

    def __init__(self) -> None:
        self._slots: list[Any] = []

    def __len__(self) -> int:
        return len(self._slots)

    def write(self, index: int, value: Any) -> None:
        """Record *value* as the outcome of step *index*.

        Raises:
            PipelineContractError: if *index* is not the next free slot.
        """
        if index != len(self._slots):
            raise PipelineContractError(index, len(self._slots))
        self._slots.append(value)

    def skip(self, index: int) -> None:
        self.write(index, SKIPPED)

    def view(self, upto: int | None = None) -> ResultView:
        """Return a read-only view over slots ``0..upto-1`` (default: all written)."""
        limit = len(self._slots) if upto is None else min(upto, len(self._slots))
        return ResultView(self._slots, limit)

    @property
    def last(self) -> Any:
        return self.view().last


Action = Callable[[ResultView], Union[Awaitable[Any], Any]]
Guard = Callable[[ResultView], bool]


@dataclass(frozen=True)
class Step:
    """One unit of work in a pipeline.

    Attributes:
        action: Called with the prior-results view; may be sync or async.
        guard: Optional predicate over the same view. When it returns a
            falsy value the action is not called and the slot is ``SKIPPED``.
        label: Human-readable description used in error notes and logs.
    """

    action: Action
    guard: Guard | None = None
    label: str = ""

    @classmethod
    def coerce(cls, value: Step | tuple) -> Step:
        """Accept ``Step`` instances or ``(action,)`` / ``(action, guard)`` tuples."""
        if isinstance(value, Step):
            return value
        if isinstance(value, tuple) and 1 <= len(value) <= 3:
            return cls(*value)
        if callable(value):
            return cls(value)
        raise TypeError(f"Cannot build a pipeline step from {value!r}")

    @property
    def description(self) -> str:
        """The label, else the action's source text, else its qualified name."""
        if self.label:
            return self.label
        try:
            return inspect.getsource(self.action).rstrip()
        except (OSError, TypeError):
            return getattr(self.action, "__qualname__", None) or repr(self.action)
