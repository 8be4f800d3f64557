"""Sequential queue — run an async worker once per item, one at a time.

A single browser session cannot be driven concurrently: two in-flight DOM
interactions on the same page race each other and leave element handles
stale in unpredictable ways. The queue therefore awaits each worker before
starting the next, and the first failure ends the whole run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from webrobot.pipeline.executor import maybe_await

logger = logging.getLogger(__name__)

T = TypeVar("T")

Worker = Callable[[T], Any]


class SequentialQueue(Generic[T]):
    """Drive *worker* over *items* strictly in order.

    Args:
        items: The items to process. Consumed once, in iteration order.
        worker: Called with each item; sync or async.
        on_done: Optional callback run once after the last item succeeds.
    """

    def __init__(
        self,
        items: Iterable[T],
        worker: Worker[T],
        on_done: Callable[[], Any] | None = None,
    ) -> None:
        self._items = list(items)
        self._worker = worker
        self._on_done = on_done
        self.processed = 0
        self.running = False

    def __len__(self) -> int:
        return len(self._items)

    async def run(self) -> None:
        """Process every item; re-raise the first worker exception unchanged."""
        if self.running:
            raise RuntimeError("SequentialQueue is already running")
        self.running = True
        try:
            for position, item in enumerate(self._items):
                logger.debug("queue item %d/%d", position + 1, len(self._items))
                await maybe_await(self._worker(item))
                self.processed += 1
        finally:
            self.running = False

        if self._on_done is not None:
            await maybe_await(self._on_done())


async def for_each_sequential(items: Iterable[T], worker: Worker[T]) -> None:
    """Await ``worker(item)`` for each item, never more than one at a time."""
    await SequentialQueue(items, worker).run()
