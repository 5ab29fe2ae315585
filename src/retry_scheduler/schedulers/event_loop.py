import asyncio
import inspect
import logging
from typing import Optional, Set

from .protocol import Callback, Scheduler, Work

logger = logging.getLogger(__name__)


class EventLoopScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.
    Checkpoints run on the loop thread; call_later and dispatch may be called
    from any thread.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop: asyncio.AbstractEventLoop = loop or asyncio.get_running_loop()
        self.futures: Set[asyncio.Future] = set()

    def call_later(self, delay: float, callback: Callback) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self.loop.call_soon_threadsafe(self.loop.call_later, delay, callback)

    def dispatch(self, work: Work) -> None:
        if not inspect.isawaitable(work) and not callable(work):
            raise TypeError(f"Cannot dispatch {type(work).__name__}")
        self.loop.call_soon_threadsafe(self._spawn, work)

    def _spawn(self, work: Work) -> None:
        if inspect.isawaitable(work):
            future = asyncio.ensure_future(work)
        else:
            future = self.loop.run_in_executor(None, work)
        self.futures.add(future)
        future.add_done_callback(self._handle_completion)

    def _handle_completion(self, future: asyncio.Future) -> None:
        self.futures.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Dispatched work failed", exc_info=error)

    async def drain(self) -> None:
        """
        Wait for all dispatched work that is still running.
        """
        while True:
            pending = [future for future in self.futures if not future.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
