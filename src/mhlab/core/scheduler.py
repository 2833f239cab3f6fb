"""Task scheduling seam used by the fork/join merge sort."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar

from mhlab.contracts.error import BadInputError

logger = logging.getLogger("mhlab")

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

SCHEDULER_KINDS = ("threads", "inline")


class TaskHandle(Protocol[T_co]):
    def join(self) -> T_co: ...

    def done(self) -> bool: ...

    def cancel(self) -> bool: ...


class TaskScheduler(Protocol):
    def submit(self, fn: Callable[..., T], *args: Any) -> TaskHandle[T]: ...

    def shutdown(self) -> None: ...


class _FutureHandle(Generic[T]):
    """Join a pooled task, running it on the caller if no worker picked it up yet."""

    __slots__ = ("_future", "_fn", "_args", "_dropped")

    def __init__(self, future: Future[T], fn: Callable[..., T], args: tuple[Any, ...]) -> None:
        self._future = future
        self._fn = fn
        self._args = args
        self._dropped = False

    def done(self) -> bool:
        return self._future.done()

    def cancel(self) -> bool:
        """Drop the task if no worker has started it; ``False`` once it is running or done."""

        if not self._future.done():
            self._dropped = self._future.cancel()
        return self._dropped

    def join(self) -> T:
        if self._dropped:
            raise CancelledError()
        # A task still sitting in the queue is pulled back and run here, so a
        # blocked worker only ever waits on work already running elsewhere.
        if self._future.cancel():
            return self._fn(*self._args)
        return self._future.result()


class ThreadPoolScheduler:
    """Fork/join scheduler backed by a bounded ``ThreadPoolExecutor``."""

    def __init__(self, max_workers: Optional[int] = None) -> None:
        if max_workers is not None and max_workers < 1:
            raise BadInputError("max_workers must be >= 1")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mhlab-sort")
        self._lock = threading.Lock()
        self._submitted = 0

    @property
    def submitted(self) -> int:
        return self._submitted

    def submit(self, fn: Callable[..., T], *args: Any) -> _FutureHandle[T]:
        with self._lock:
            self._submitted += 1
        future = self._executor.submit(fn, *args)
        return _FutureHandle(future, fn, args)

    def shutdown(self) -> None:
        """Shut down the underlying executor."""
        self._executor.shutdown(wait=True, cancel_futures=False)

    def __enter__(self) -> "ThreadPoolScheduler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


class _DeferredHandle(Generic[T]):
    __slots__ = ("_fn", "_args", "_done", "_dropped", "_result")

    def __init__(self, fn: Callable[..., T], args: tuple[Any, ...]) -> None:
        self._fn = fn
        self._args = args
        self._done = False
        self._dropped = False
        self._result: Optional[T] = None

    def done(self) -> bool:
        return self._done

    def cancel(self) -> bool:
        if not self._done:
            self._done = self._dropped = True
        return self._dropped

    def join(self) -> T:
        if self._dropped:
            raise CancelledError()
        if not self._done:
            self._result = self._fn(*self._args)
            self._done = True
        return self._result  # type: ignore[return-value]


class InlineScheduler:
    """Single-threaded cooperative scheduler: forked work runs when joined."""

    def __init__(self) -> None:
        self._submitted = 0

    @property
    def submitted(self) -> int:
        return self._submitted

    def submit(self, fn: Callable[..., T], *args: Any) -> _DeferredHandle[T]:
        self._submitted += 1
        return _DeferredHandle(fn, args)

    def shutdown(self) -> None:
        return

    def __enter__(self) -> "InlineScheduler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


def create_scheduler(kind: str = "threads", max_workers: Optional[int] = None) -> TaskScheduler:
    normalized = (kind or "threads").strip().lower()
    if normalized == "threads":
        return ThreadPoolScheduler(max_workers)
    if normalized == "inline":
        return InlineScheduler()
    raise BadInputError(
        f"Unknown scheduler {kind!r}",
        hint=f"choose one of: {', '.join(SCHEDULER_KINDS)}",
    )


__all__ = [
    "SCHEDULER_KINDS",
    "InlineScheduler",
    "TaskHandle",
    "TaskScheduler",
    "ThreadPoolScheduler",
    "create_scheduler",
]
