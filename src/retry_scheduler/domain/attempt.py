from datetime import datetime
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.CANCELED)


def utcnow() -> datetime:
    return datetime.now(ZoneInfo("UTC"))


class Attempt(BaseModel):
    """
    Represents a single invocation of a task's operation body.
    """
    index: int = Field(..., ge=0, description="Zero based attempt index")
    started_at: datetime = Field(default_factory=utcnow, description="When the operation body was invoked")
    finished_at: Optional[datetime] = Field(None, description="When the operation body returned or raised")
    error: Optional[str] = Field(None, description="String form of the exception raised by the operation body")

    @property
    def raised(self) -> bool:
        return self.error is not None

    def finish(self, error: Optional[BaseException] = None) -> None:
        """
        Mark the attempt as returned. An attempt that raised is still an attempt.
        """
        self.finished_at = utcnow()
        if error is not None:
            self.error = f"{type(error).__name__}: {error}"
