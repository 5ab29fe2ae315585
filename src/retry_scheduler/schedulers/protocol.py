from typing import Any, Awaitable, Callable, Protocol, Union

Callback = Callable[[], Any]
Work = Union[Callable[[], Any], Awaitable[Any]]


class Scheduler(Protocol):
    """
    Protocol class for the timer capability that drives task checkpoints.
    """

    def call_later(self, delay: float, callback: Callback) -> None:
        """
        Run the callback once, after at least `delay` seconds.

        Implementations must never invoke the callback synchronously from
        inside call_later, even when delay is zero.

        Args:
            delay (float): Seconds to wait.
            callback (Callable[[], Any]): Zero argument callable to run.
        """
        ...

    def dispatch(self, work: Work) -> None:
        """
        Run a callable or an awaitable off the scheduling context.

        Args:
            work (Callable[[], Any] | Awaitable[Any]): The work to run.
        """
        ...
