import asyncio
import threading
from typing import Optional

from .event_loop import EventLoopScheduler
from .manual import ManualScheduler
from .protocol import Scheduler
from .threaded import ThreadScheduler

_shared_thread_scheduler: Optional[ThreadScheduler] = None
_shared_lock = threading.Lock()


def default_scheduler() -> Scheduler:
    """
    Scheduler used when a task is started without one.
    Inside a coroutine this is bound to the running event loop, otherwise
    a process wide ThreadScheduler is shared by all tasks.
    """
    global _shared_thread_scheduler
    try:
        return EventLoopScheduler(asyncio.get_running_loop())
    except RuntimeError:
        pass
    with _shared_lock:
        if _shared_thread_scheduler is None:
            _shared_thread_scheduler = ThreadScheduler()
        return _shared_thread_scheduler


__all__ = ["Scheduler", "EventLoopScheduler", "ThreadScheduler", "ManualScheduler", "default_scheduler"]
