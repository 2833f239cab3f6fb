from __future__ import annotations

import threading
from concurrent.futures import CancelledError

import pytest

from mhlab.contracts.error import BadInputError
from mhlab.core.scheduler import InlineScheduler, ThreadPoolScheduler, create_scheduler


def test_create_scheduler_kinds() -> None:
    threads = create_scheduler("threads", 2)
    try:
        assert isinstance(threads, ThreadPoolScheduler)
    finally:
        threads.shutdown()
    assert isinstance(create_scheduler(" Inline "), InlineScheduler)


def test_create_scheduler_unknown_kind() -> None:
    with pytest.raises(BadInputError) as excinfo:
        create_scheduler("processes")
    assert "threads" in (excinfo.value.hint or "")


def test_thread_pool_rejects_non_positive_workers() -> None:
    with pytest.raises(BadInputError):
        ThreadPoolScheduler(max_workers=0)


def test_thread_pool_join_returns_result() -> None:
    with ThreadPoolScheduler(max_workers=2) as scheduler:
        handle = scheduler.submit(pow, 2, 10)
        assert handle.join() == 1024
        assert handle.done()
        assert scheduler.submitted == 1


def test_join_runs_queued_task_on_caller() -> None:
    release = threading.Event()
    started = threading.Event()

    def blocker() -> str:
        started.set()
        release.wait(timeout=5)
        return "blocker"

    with ThreadPoolScheduler(max_workers=1) as scheduler:
        busy = scheduler.submit(blocker)
        assert started.wait(timeout=5)
        queued = scheduler.submit(lambda: threading.current_thread().name)
        ran_on = queued.join()
        release.set()
        assert busy.join() == "blocker"

    assert ran_on == threading.current_thread().name


def test_join_reraises_task_error() -> None:
    def fail() -> None:
        raise KeyError("missing")

    with ThreadPoolScheduler(max_workers=1) as scheduler:
        handle = scheduler.submit(fail)
        with pytest.raises(KeyError):
            handle.join()


def test_inline_scheduler_defers_until_join() -> None:
    calls: list[int] = []
    scheduler = InlineScheduler()
    handle = scheduler.submit(calls.append, 1)
    assert calls == []
    assert not handle.done()
    handle.join()
    handle.join()
    assert calls == [1]
    assert handle.done()


def test_cancel_drops_queued_task_only() -> None:
    release = threading.Event()
    started = threading.Event()
    calls: list[str] = []

    def blocker() -> str:
        started.set()
        release.wait(timeout=5)
        return "blocker"

    with ThreadPoolScheduler(max_workers=1) as scheduler:
        busy = scheduler.submit(blocker)
        assert started.wait(timeout=5)
        queued = scheduler.submit(calls.append, "queued")
        assert queued.cancel()
        assert not busy.cancel()
        release.set()
        assert busy.join() == "blocker"
        with pytest.raises(CancelledError):
            queued.join()
    assert calls == []


def test_inline_cancel_skips_deferred_work() -> None:
    calls: list[int] = []
    scheduler = InlineScheduler()
    dropped = scheduler.submit(calls.append, 1)
    assert dropped.cancel()
    assert dropped.done()
    with pytest.raises(CancelledError):
        dropped.join()

    finished = scheduler.submit(calls.append, 2)
    finished.join()
    assert not finished.cancel()
    assert calls == [2]
