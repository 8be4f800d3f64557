"""Step pipeline executor — run guarded steps strictly in declaration order.

Each step is an ``(action, guard)`` pair. Before step *i* runs, its guard is
evaluated against the results of steps ``0..i-1``; a false guard skips the
step without side effects and without yielding to the event loop. The first
exception halts the run: no later step runs, the ``on_error`` hook is told
which step failed, and the same exception instance is re-raised annotated
with the failing step's position.

Example::

    result = await run_pipeline([
        (lambda r: driver.find_elements(locator),),
        (lambda r: fail(ElementNotFoundError(locator)), lambda r: not r[0]),
        (lambda r: r[0][0].click(), lambda r: bool(r[0])),
    ])
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Any, NoReturn

from webrobot.pipeline.models import ResultRegister, ResultView, Step

logger = logging.getLogger(__name__)

StepLike = Step | tuple


@dataclass(frozen=True)
class StepFailure:
    """What the ``on_error`` hook receives when a step raises."""

    index: int
    step: Step
    error: BaseException
    results: ResultView
    pipeline: str = ""

    @property
    def info(self) -> str:
        return self.step.description


@dataclass(frozen=True)
class PipelineOptions:
    """Per-run options.

    Attributes:
        label: Name of the pipeline, used in error notes and debug logs.
        on_error: Called once with a ``StepFailure`` before the error
            propagates. Exceptions raised by the hook itself are logged and
            do not replace the step's error.
    """

    label: str = ""
    on_error: Callable[[StepFailure], None] | None = None

    def with_error_hook(self, hook: Callable[[StepFailure], None]) -> PipelineOptions:
        return replace(self, on_error=hook)


def fail(error: BaseException) -> NoReturn:
    """Raise *error*; lets a step action be a plain lambda."""
    raise error


async def maybe_await(value: Any) -> Any:
    """Await *value* if it is awaitable; sync hooks and actions pass through."""
    if inspect.isawaitable(value):
        return await value
    return value


def annotate_error(error: BaseException, index: int, step: Step, pipeline: str = "") -> None:
    """Attach the failing step's position to *error* without replacing it."""
    trail = getattr(error, "webrobot_steps", None)
    if trail is None:
        trail = []
        try:
            error.webrobot_steps = trail  # type: ignore[attr-defined]
        except AttributeError:
            return
    trail.append((index, step.label or pipeline))
    where = f"step {index}"
    if step.label:
        where += f" ({step.label})"
    if pipeline:
        where += f" of {pipeline}"
    error.add_note(f"while running {where}")


class StepPipeline:
    """Execute an ordered list of guarded steps sharing one result register."""

    def __init__(self, steps: Iterable[StepLike], options: PipelineOptions | None = None) -> None:
        self.steps: list[Step] = [Step.coerce(s) for s in steps]
        self.options = options or PipelineOptions()
        self.register = ResultRegister()

    async def execute(self) -> Any:
        """Run every step in order.

        Returns:
            The last non-skipped step result, or ``None`` when every step was
            skipped or the step list is empty.

        Raises:
            Exception: the first exception raised by a guard or an action,
                annotated with the step position.
        """
        if len(self.register):
            raise RuntimeError("A StepPipeline can only be executed once")

        label = self.options.label
        for index, step in enumerate(self.steps):
            view = self.register.view(index)
            try:
                if step.guard is not None and not step.guard(view):
                    logger.debug("%s step %d skipped", label or "pipeline", index)
                    self.register.skip(index)
                    continue
                result = await maybe_await(step.action(view))
            except Exception as exc:
                annotate_error(exc, index, step, label)
                self._report(StepFailure(index, step, exc, view, label))
                raise
            self.register.write(index, result)

        return self.register.last

    def _report(self, failure: StepFailure) -> None:
        hook = self.options.on_error
        if hook is None:
            return
        try:
            hook(failure)
        except Exception:
            logger.exception("Pipeline error hook failed for step %d", failure.index)


async def run_pipeline(steps: Iterable[StepLike], options: PipelineOptions | None = None) -> Any:
    """Build and execute a ``StepPipeline`` in one call."""
    return await StepPipeline(steps, options).execute()
