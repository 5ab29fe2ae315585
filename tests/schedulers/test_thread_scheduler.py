import threading
from typing import List

import pytest

from retry_scheduler.domain.group import TaskGroup
from retry_scheduler.domain.task import Task
from retry_scheduler.domain.attempt import TaskStatus
from retry_scheduler.schedulers import default_scheduler
from retry_scheduler.schedulers.threaded import ThreadScheduler


@pytest.fixture(scope="function")
def scheduler():
    scheduler = ThreadScheduler(max_workers=2)
    yield scheduler
    scheduler.shutdown()


def test_call_later_runs_on_timer_thread(scheduler: ThreadScheduler) -> None:
    ran = threading.Event()
    threads: List[int] = []

    def callback() -> None:
        threads.append(threading.get_ident())
        ran.set()

    scheduler.call_later(0.01, callback)

    assert ran.wait(timeout=1)
    assert threads and threads[0] != threading.get_ident()


def test_failing_callback_does_not_break_scheduler(scheduler: ThreadScheduler) -> None:
    ran = threading.Event()

    def broken() -> None:
        raise RuntimeError("broken callback")

    scheduler.call_later(0, broken)
    scheduler.call_later(0.02, ran.set)

    assert ran.wait(timeout=1)


def test_dispatch_runs_on_pool(scheduler: ThreadScheduler) -> None:
    calls: List[str] = []
    finished = threading.Event()

    async def work() -> None:
        calls.append("coroutine")
        finished.set()

    scheduler.dispatch(lambda: calls.append("callable"))
    scheduler.dispatch(work())

    assert finished.wait(timeout=1)
    scheduler.shutdown(wait=True)
    assert sorted(calls) == ["callable", "coroutine"]


def test_shutdown_cancels_pending_timers() -> None:
    scheduler = ThreadScheduler()
    ran = threading.Event()
    scheduler.call_later(5, ran.set)
    assert scheduler.pending == 1

    scheduler.shutdown()

    assert scheduler.pending == 0
    assert not ran.wait(timeout=0.05)
    with pytest.raises(RuntimeError, match="shut down"):
        scheduler.call_later(0, ran.set)


def test_task_retries_on_threads(scheduler: ThreadScheduler) -> None:
    finished = threading.Event()
    attempts: List[int] = []

    task = Task().configure(max_attempts=3, delay=0.01, operation=lambda t, i: attempts.append(i))
    task.on_fail(lambda t: finished.set())
    task.start(scheduler)

    assert finished.wait(timeout=2)
    assert attempts == [0, 1, 2]
    assert task.status == TaskStatus.FAILED


def test_cancel_all_from_caller_thread(scheduler: ThreadScheduler) -> None:
    canceled = threading.Event()
    completions: List[int] = []
    group = TaskGroup().on_completion(lambda: completions.append(1))
    task = Task(max_attempts=100, delay=0.01).on_cancel(lambda t: canceled.set())
    group.submit(task, scheduler)

    group.cancel_all()

    assert canceled.wait(timeout=2)
    assert task.status == TaskStatus.CANCELED
    assert completions == []


def test_default_scheduler_outside_event_loop() -> None:
    first = default_scheduler()
    second = default_scheduler()

    assert isinstance(first, ThreadScheduler)
    assert first is second


def test_many_tasks_terminating_together(scheduler: ThreadScheduler) -> None:
    finished = threading.Event()
    completions: List[int] = []
    lock = threading.Lock()

    def complete() -> None:
        with lock:
            completions.append(1)
        finished.set()

    def operation(task: Task, index: int) -> None:
        task.succeeded = True

    group = TaskGroup().on_completion(complete)
    tasks = [Task().configure(max_attempts=2, delay=0.02, operation=operation) for _ in range(50)]
    for task in tasks:
        group.add(task)
    for task in tasks:
        task.start(scheduler)

    assert finished.wait(timeout=5)
    assert len(group) == 0
    assert all(task.status == TaskStatus.SUCCEEDED for task in tasks)
    assert completions == [1], "Expected exactly one completion"
