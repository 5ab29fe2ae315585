import asyncio
import heapq
import inspect
import itertools
import logging
from typing import Any, Awaitable, List, Tuple

from .protocol import Callback, Scheduler, Work

logger = logging.getLogger(__name__)


async def _consume(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class ManualScheduler(Scheduler):
    """
    Deterministic scheduler driven by a virtual clock.
    Nothing runs until advance() or run_until_idle() is called, which makes
    attempt counts and callback ordering reproducible in tests and simulations.

    Exceptions raised by callbacks propagate out of advance()/run_until_idle().
    Dispatched awaitables are run to completion with asyncio.run, so this
    scheduler must not be driven from inside a running event loop.
    """

    def __init__(self, start: float = 0.0):
        self.now: float = start
        self._queue: List[Tuple[float, int, Callback]] = []
        self._counter = itertools.count()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def call_later(self, delay: float, callback: Callback) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        heapq.heappush(self._queue, (self.now + delay, next(self._counter), callback))

    def dispatch(self, work: Work) -> None:
        if inspect.isawaitable(work):
            self.call_later(0, lambda: asyncio.run(_consume(work)))
        elif callable(work):
            self.call_later(0, work)
        else:
            raise TypeError(f"Cannot dispatch {type(work).__name__}")

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run every callback that becomes due,
        including callbacks scheduled while advancing.

        Returns:
            int: Number of callbacks that ran.
        """
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, callback = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            callback()
            ran += 1
        self.now = target
        return ran

    def run_until_idle(self, max_callbacks: int = 10_000) -> int:
        """
        Run callbacks in due order until nothing is pending.
        """
        ran = 0
        while self._queue:
            if ran >= max_callbacks:
                raise RuntimeError(f"Scheduler still busy after {max_callbacks} callbacks")
            due, _, callback = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            callback()
            ran += 1
        logger.debug("ManualScheduler idle at t=%.3f after %d callbacks", self.now, ran)
        return ran
