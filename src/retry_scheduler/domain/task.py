import inspect
import logging
import threading
import uuid
import weakref
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Union

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from ..config import get_settings
from ..exceptions import TaskStateError
from ..schedulers import Scheduler, default_scheduler
from .attempt import Attempt, TaskStatus, utcnow

logger = logging.getLogger(__name__)

AttemptCallback = Callable[["Task", int], Union[None, Awaitable[Any]]]
TaskCallback = Callable[["Task"], Any]

_CONFIGURATION = frozenset({"max_attempts", "delay"})


class TerminationObserver(Protocol):
    def task_terminated(self, task: "Task") -> None:
        """Called once when the task reaches a terminal state."""
        ...


class Task(BaseModel):
    """
    Runs an operation repeatedly, with a delay between attempts, until the
    operation reports success, the task is canceled or the attempt budget is
    exhausted.

    The operation is registered with on_attempt() and receives the task and the
    zero based attempt index. It signals success by setting `task.succeeded`,
    synchronously or later from any thread; the next checkpoint picks it up.

    Each checkpoint looks at cancellation first, then reported success, then
    the attempt budget, so a success reported by the last attempt still ends
    in on_success rather than on_fail.

    ```
    Task.call(lambda task, index: fetch(task), max_attempts=5, delay=2.0) \\
        .on_success(lambda task: print("success")) \\
        .on_fail(lambda task: print("fail"))
    ```
    """
    model_config = {"validate_assignment": True}

    id: str = Field(default_factory=lambda: f"tsk_{uuid.uuid4().hex}", description="Unique task identifier")
    name: Optional[str] = Field(None, description="Optional label used in logs")
    max_attempts: int = Field(default_factory=lambda: get_settings().max_attempts, gt=0, description="Attempts before the task fails")
    delay: float = Field(default_factory=lambda: get_settings().delay, ge=0, description="Seconds between checkpoints")
    attempt_count: int = Field(default=0, ge=0, description="Checkpoints that scheduled an attempt so far")
    status: TaskStatus = TaskStatus.IDLE
    attempts: List[Attempt] = Field(default_factory=list, description="History of operation invocations")
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    _lock: Any = PrivateAttr(default_factory=threading.RLock)
    _succeeded: bool = PrivateAttr(default=False)
    _canceled: bool = PrivateAttr(default=False)
    _scheduler: Optional[Scheduler] = PrivateAttr(default=None)
    _observer: Optional[weakref.ReferenceType] = PrivateAttr(default=None)
    _on_attempt: Optional[AttemptCallback] = PrivateAttr(default=None)
    _on_success: Optional[TaskCallback] = PrivateAttr(default=None)
    _on_fail: Optional[TaskCallback] = PrivateAttr(default=None)
    _on_cancel: Optional[TaskCallback] = PrivateAttr(default=None)

    @field_validator("delay", mode="before")
    def convert_timedelta(cls, v: Any) -> Any:
        if isinstance(v, timedelta):
            return v.total_seconds()
        return v

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _CONFIGURATION and self.status is not TaskStatus.IDLE:
            raise TaskStateError(f"Cannot change {name} of task {self.label} once started", self.status.value)
        super().__setattr__(name, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def label(self) -> str:
        return self.name or self.id

    @property
    def succeeded(self) -> bool:
        with self._lock:
            return self._succeeded

    @succeeded.setter
    def succeeded(self, value: bool) -> None:
        with self._lock:
            self._succeeded = bool(value)

    @property
    def canceled(self) -> bool:
        with self._lock:
            return self._canceled

    @canceled.setter
    def canceled(self, value: bool) -> None:
        with self._lock:
            self._canceled = bool(value)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    # Configuration

    def configure(
        self,
        max_attempts: Optional[int] = None,
        delay: Optional[Union[float, timedelta]] = None,
        operation: Optional[AttemptCallback] = None,
    ) -> "Task":
        """
        Set the attempt budget, the delay and the operation body.
        Only allowed before the task is started.
        """
        if self.status is not TaskStatus.IDLE:
            raise TaskStateError(f"Task {self.label} is already {self.status.value}", self.status.value)
        if max_attempts is not None:
            self.max_attempts = max_attempts
        if delay is not None:
            self.delay = delay
        if operation is not None:
            self._on_attempt = operation
        return self

    def _register(self, slot: str, callback: Optional[Callable]) -> "Task":
        with self._lock:
            if self.is_terminal:
                raise TaskStateError(f"Task {self.label} already {self.status.value}", self.status.value)
            setattr(self, slot, callback)
        return self

    def on_attempt(self, callback: Optional[AttemptCallback]) -> "Task":
        return self._register("_on_attempt", callback)

    def on_success(self, callback: Optional[TaskCallback]) -> "Task":
        """
        Called when an attempt has reported success.
        """
        return self._register("_on_success", callback)

    def on_fail(self, callback: Optional[TaskCallback]) -> "Task":
        """
        Called when all attempts have been unsuccessful.
        """
        return self._register("_on_fail", callback)

    def on_cancel(self, callback: Optional[TaskCallback]) -> "Task":
        """
        Called when the loop stopped because cancel() was requested.
        """
        return self._register("_on_cancel", callback)

    def set_observer(self, observer: Optional[TerminationObserver]) -> None:
        """
        Register the object notified on termination. Only a weak reference is kept.
        """
        with self._lock:
            self._observer = weakref.ref(observer) if observer is not None else None

    # Lifecycle

    @classmethod
    def call(
        cls,
        operation: AttemptCallback,
        max_attempts: int = 1,
        delay: Union[float, timedelta] = 0,
        scheduler: Optional[Scheduler] = None,
        **fields: Any,
    ) -> "Task":
        """
        Create, configure and start a task in one go.
        """
        task = cls(**fields)
        task.configure(max_attempts=max_attempts, delay=delay, operation=operation)
        return task.start(scheduler)

    def start(self, scheduler: Optional[Scheduler] = None) -> "Task":
        """
        Schedule the first checkpoint. A zero delay still waits min_delay
        before the first checkpoint.
        """
        with self._lock:
            if self.status is not TaskStatus.IDLE:
                raise TaskStateError(f"Task {self.label} is already {self.status.value}", self.status.value)
            self._scheduler = scheduler if scheduler is not None else default_scheduler()
            self.status = TaskStatus.ATTEMPTING
            self.started_at = utcnow()

        wait = self.delay if self.delay > 0 else get_settings().min_delay
        logger.debug("Task %s started: max_attempts=%d delay=%.3fs", self.label, self.max_attempts, self.delay)
        self._scheduler.call_later(wait, self._checkpoint)
        return self

    def cancel(self) -> None:
        """
        Request cancellation. An attempt already running is not interrupted;
        the next checkpoint ends the loop.
        """
        self.canceled = True

    # Checkpoints

    def _checkpoint(self) -> None:
        with self._lock:
            canceled = self._canceled
            succeeded = self._succeeded
        index = self.attempt_count
        logger.debug("Task %s checkpoint %d", self.label, index)

        if canceled:
            self._finish(TaskStatus.CANCELED)
            try:
                if self._on_cancel:
                    self._on_cancel(self)
            finally:
                self._notify_observer()
            return

        # A success reported by the last attempt still counts.
        if succeeded:
            self._finish(TaskStatus.SUCCEEDED)
            try:
                self._notify_observer()
            finally:
                if self._on_success:
                    self._on_success(self)
            return

        if index == self.max_attempts:
            self._finish(TaskStatus.FAILED)
            try:
                if self._on_fail:
                    self._on_fail(self)
            finally:
                self._notify_observer()
            return

        self._attempt(index)
        self.attempt_count = index + 1
        self._scheduler.call_later(self.delay, self._checkpoint)

    def _attempt(self, index: int) -> None:
        attempt = Attempt(index=index)
        self.attempts.append(attempt)
        if self._on_attempt is None:
            attempt.finish()
            return

        try:
            result = self._on_attempt(self, index)
        except Exception as e:
            logger.exception("Task %s attempt %d raised", self.label, index)
            attempt.finish(e)
            return

        if inspect.isawaitable(result):
            self._scheduler.dispatch(self._await_attempt(attempt, result))
        else:
            attempt.finish()

    async def _await_attempt(self, attempt: Attempt, result: Awaitable[Any]) -> None:
        try:
            await result
        except Exception as e:
            logger.exception("Task %s attempt %d raised", self.label, attempt.index)
            attempt.finish(e)
        else:
            attempt.finish()

    def _finish(self, status: TaskStatus) -> None:
        with self._lock:
            self.status = status
            self.ended_at = utcnow()
        logger.info("Task %s %s after %d attempt(s)", self.label, status.value, self.attempt_count)

    def _notify_observer(self) -> None:
        with self._lock:
            observer = self._observer() if self._observer is not None else None
        if observer is not None:
            observer.task_terminated(self)
