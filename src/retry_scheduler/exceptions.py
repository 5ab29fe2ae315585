from typing import Optional


class RetrySchedulerError(RuntimeError):
    """
    Base class for errors raised by retry_scheduler.
    """


class TaskStateError(RetrySchedulerError):
    """
    Raised when an operation is not allowed in the task's current state,
    e.g. starting a task twice or reconfiguring a task that already started.
    """

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status
