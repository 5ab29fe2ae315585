import asyncio
import inspect
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Awaitable, Optional, Set

from .protocol import Callback, Scheduler, Work

logger = logging.getLogger(__name__)


async def _consume(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class ThreadScheduler(Scheduler):
    """
    Scheduler that runs every callback on its own timer thread and dispatched
    work on a thread pool. Useful when no event loop is available.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="retry-scheduler")
        self._timers: Set[threading.Timer] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def call_later(self, delay: float, callback: Callback) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        timer = threading.Timer(delay, lambda: self._run(timer, callback))
        timer.daemon = True
        with self._lock:
            if self._closed:
                raise RuntimeError("ThreadScheduler has been shut down")
            self._timers.add(timer)
        timer.start()

    def _run(self, timer: threading.Timer, callback: Callback) -> None:
        with self._lock:
            self._timers.discard(timer)
        try:
            callback()
        except Exception:
            logger.exception("Scheduled callback failed")

    def dispatch(self, work: Work) -> None:
        if inspect.isawaitable(work):
            future = self._executor.submit(asyncio.run, _consume(work))
        elif callable(work):
            future = self._executor.submit(work)
        else:
            raise TypeError(f"Cannot dispatch {type(work).__name__}")
        future.add_done_callback(self._handle_completion)

    def _handle_completion(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Dispatched work failed", exc_info=error)

    def shutdown(self, wait: bool = True) -> None:
        """
        Cancel pending timers and stop the worker pool.
        """
        with self._lock:
            self._closed = True
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        self._executor.shutdown(wait=wait)
