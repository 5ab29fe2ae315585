import logging
import threading
from typing import Callable, FrozenSet, Optional, Set

from ..schedulers import Scheduler
from .task import Task

logger = logging.getLogger(__name__)


class TaskGroup:
    """
    Tracks a dynamic set of tasks and fires a single completion callback each
    time the set drains because its last task terminated.
    """

    def __init__(self):
        self._tasks: Set[Task] = set()
        self._completion: Optional[Callable[[], None]] = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, task: object) -> bool:
        with self._lock:
            return task in self._tasks

    @property
    def tasks(self) -> FrozenSet[Task]:
        with self._lock:
            return frozenset(self._tasks)

    def on_completion(self, callback: Optional[Callable[[], None]]) -> "TaskGroup":
        self._completion = callback
        return self

    def add(self, task: Task) -> None:
        """
        Track the task. The group becomes the task's only termination observer.
        """
        with self._lock:
            self._tasks.add(task)
        task.set_observer(self)
        logger.debug("Task %s added to group (%d tracked)", task.label, len(self))

    def submit(self, task: Task, scheduler: Optional[Scheduler] = None) -> Task:
        """
        Track the task and start it.
        """
        self.add(task)
        return task.start(scheduler)

    def cancel_all(self) -> None:
        """
        Mark every tracked task canceled and forget them right away.
        The completion callback is not fired.
        """
        with self._lock:
            tasks = list(self._tasks)
            self._tasks.clear()
        for task in tasks:
            task.cancel()
        logger.info("Canceled %d task(s)", len(tasks))

    def task_terminated(self, task: Task) -> None:
        """
        Termination callback invoked by tracked tasks.
        """
        with self._lock:
            if task not in self._tasks:
                return
            self._tasks.remove(task)
            drained = not self._tasks
        if drained:
            logger.debug("Task group drained")
            if self._completion:
                self._completion()
