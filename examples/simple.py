import asyncio
import logging
import random

from retry_scheduler.domain.group import TaskGroup
from retry_scheduler.domain.task import Task

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


async def flaky_fetch(task: Task, index: int) -> None:
    """
    Pretend to call a remote service that only answers some of the time.
    """
    await asyncio.sleep(0.2)
    if random.random() < 0.4:
        print(f"{task.label}: attempt {index} succeeded")
        task.succeeded = True
    else:
        print(f"{task.label}: attempt {index} failed")


async def main():
    done = asyncio.Event()
    group = TaskGroup().on_completion(done.set)

    for name in ("users", "orders", "invoices"):
        task = Task(name=name) \
            .configure(max_attempts=4, delay=0.5, operation=flaky_fetch) \
            .on_success(lambda t: print(f"{t.label}: done after {t.attempt_count} attempt(s)")) \
            .on_fail(lambda t: print(f"{t.label}: giving up"))
        group.submit(task)

    await done.wait()
    print("All fetches finished.")


if __name__ == "__main__":
    asyncio.run(main())
