import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "RETRY_SCHEDULER"


def _env(suffix: str) -> Optional[str]:
    value = os.getenv(f"{ENV_PREFIX}_{suffix}")
    if value is None or not value.strip():
        return None
    return value.strip()


class TaskSettings(BaseModel):
    """
    Library wide defaults for newly created tasks.
    """
    max_attempts: int = Field(default=1, gt=0, description="Number of attempts before a task fails")
    delay: float = Field(default=1.0, ge=0, description="Seconds to wait between two checkpoints")
    min_delay: float = Field(default=0.1, gt=0, description="Wait before the first checkpoint when delay is zero")

    @classmethod
    def from_env(cls) -> "TaskSettings":
        """
        Build settings from RETRY_SCHEDULER_* environment variables.
        Unset variables keep their defaults.
        """
        values = {}
        for name in cls.model_fields:
            raw = _env(name.upper())
            if raw is not None:
                values[name] = raw
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> TaskSettings:
    return TaskSettings.from_env()
