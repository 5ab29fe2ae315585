"""
Retry Scheduling Primitives

This package provides two small building blocks for running work that may
need several tries.

Core Concepts:

Task:
    A Task runs an operation repeatedly, waiting a fixed delay between
    attempts, until the operation reports success, the task is canceled,
    or the configured number of attempts is exhausted.
    Exactly one of on_success, on_fail or on_cancel is called per task.

TaskGroup:
    A TaskGroup tracks a set of in-flight Tasks and calls a single completion
    callback whenever the last tracked task terminates.

Scheduler:
    The timer capability that drives a Task's checkpoints. Tasks run on an
    asyncio event loop, on timer threads, or on a manual virtual clock.

Relationships:
    - A Task belongs to at most one TaskGroup and only holds a weak reference to it.
    - A TaskGroup owns its Tasks until they terminate or cancel_all() is called.
"""

from .domain import Attempt, Task, TaskGroup, TaskStatus
from .exceptions import RetrySchedulerError, TaskStateError
from .schedulers import EventLoopScheduler, ManualScheduler, Scheduler, ThreadScheduler, default_scheduler

__all__ = [
    "Task",
    "TaskGroup",
    "TaskStatus",
    "Attempt",
    "Scheduler",
    "EventLoopScheduler",
    "ThreadScheduler",
    "ManualScheduler",
    "default_scheduler",
    "RetrySchedulerError",
    "TaskStateError",
]
