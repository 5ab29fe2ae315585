import pytest
from pydantic import ValidationError

from retry_scheduler.config import TaskSettings, get_settings
from retry_scheduler.domain.task import Task


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("MAX_ATTEMPTS", "DELAY", "MIN_DELAY"):
        monkeypatch.delenv(f"RETRY_SCHEDULER_{name}", raising=False)

    settings = TaskSettings.from_env()

    assert settings.max_attempts == 1
    assert settings.delay == 1.0
    assert settings.min_delay == 0.1


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRY_SCHEDULER_MAX_ATTEMPTS", "4")
    monkeypatch.setenv("RETRY_SCHEDULER_DELAY", "0.5")
    monkeypatch.setenv("RETRY_SCHEDULER_MIN_DELAY", " ")

    settings = TaskSettings.from_env()

    assert settings.max_attempts == 4
    assert settings.delay == 0.5
    assert settings.min_delay == 0.1


def test_invalid_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRY_SCHEDULER_MAX_ATTEMPTS", "0")
    with pytest.raises(ValidationError):
        TaskSettings.from_env()


def test_task_defaults_follow_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRY_SCHEDULER_MAX_ATTEMPTS", "3")
    monkeypatch.setenv("RETRY_SCHEDULER_DELAY", "2")

    task = Task()

    assert task.max_attempts == 3
    assert task.delay == 2.0
