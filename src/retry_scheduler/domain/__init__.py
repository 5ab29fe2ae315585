from .attempt import Attempt, TaskStatus
from .task import Task, TerminationObserver
from .group import TaskGroup

__all__ = ["Task", "TaskStatus", "TaskGroup", "Attempt", "TerminationObserver"]
