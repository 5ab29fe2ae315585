import threading
import time

from retry_scheduler.domain.group import TaskGroup
from retry_scheduler.domain.task import Task
from retry_scheduler.schedulers.threaded import ThreadScheduler

scheduler = ThreadScheduler()
finished = threading.Event()
group = TaskGroup().on_completion(finished.set)


def poll(task: Task, index: int) -> None:
    print(f"{task.label}: polling ({index})")


for name in ("disk", "network"):
    task = Task(name=name) \
        .configure(max_attempts=10, delay=0.3, operation=poll) \
        .on_cancel(lambda t: print(f"{t.label}: canceled after {t.attempt_count} attempt(s)"))
    group.submit(task, scheduler)

time.sleep(1.0)
# cancel_all forgets the tasks right away, so the completion callback never fires.
group.cancel_all()
time.sleep(0.5)
print("completion fired:", finished.is_set())
scheduler.shutdown()
