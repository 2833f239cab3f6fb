"""Fork/join merge sort over mutable sequences."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from itertools import islice
from typing import Any, Callable, List, MutableSequence, Optional, TypeVar

from mhlab.contracts.error import PreconditionError, require_not_none

from .scheduler import TaskScheduler, ThreadPoolScheduler

logger = logging.getLogger("mhlab")

T = TypeVar("T")
Comparator = Callable[[Any, Any], int]


def fork_depth(n: int) -> int:
    """Depth of the binary fork tree for ``n`` elements (``ceil(log2 n)``)."""

    return (n - 1).bit_length() if n > 1 else 0


def _left_first(left: Any, right: Any, cmp: Optional[Comparator]) -> bool:
    if cmp is None:
        return not right < left
    return cmp(left, right) <= 0


def merge(
    left: List[T],
    right: List[T],
    target: MutableSequence[T],
    *,
    cmp: Optional[Comparator] = None,
) -> MutableSequence[T]:
    """Merge two sorted lists into ``target`` positionally; ties keep the left element first."""

    index = 0
    li = 0
    ri = 0
    while li < len(left) and ri < len(right):
        if _left_first(left[li], right[ri], cmp):
            target[index] = left[li]
            li += 1
        else:
            target[index] = right[ri]
            ri += 1
        index += 1
    while li < len(left):
        target[index] = left[li]
        index += 1
        li += 1
    while ri < len(right):
        target[index] = right[ri]
        index += 1
        ri += 1
    return target


def _split(elements: MutableSequence[T]) -> tuple[List[T], List[T]]:
    mid = len(elements) // 2
    return list(islice(elements, 0, mid)), list(islice(elements, mid, None))


def _check_sequence(sequence: Any) -> None:
    require_not_none(sequence, "sequence")
    if not hasattr(sequence, "__setitem__") or not hasattr(sequence, "__len__"):
        raise PreconditionError(
            f"sequence must be a mutable sequence, got {type(sequence).__name__}"
        )


class ParallelMergeSorter:
    """Merge sort that forks the right half onto a scheduler and sorts the left half inline.

    Every recursion level submits exactly one task and joins it before merging,
    so a merge never starts until both halves are sorted. Without an explicit
    scheduler each ``sort`` call runs on its own ``ThreadPoolScheduler``.
    """

    def __init__(
        self,
        scheduler: Optional[TaskScheduler] = None,
        *,
        cmp: Optional[Comparator] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self._scheduler = scheduler
        self._cmp = cmp
        self._max_workers = max_workers

    def sort(self, sequence: MutableSequence[T]) -> MutableSequence[T]:
        _check_sequence(sequence)
        logger.debug(
            "Sorting %d elements (fork depth=%d)", len(sequence), fork_depth(len(sequence))
        )
        if self._scheduler is not None:
            return self._sort(sequence, self._scheduler)
        with ThreadPoolScheduler(self._max_workers) as scheduler:
            return self._sort(sequence, scheduler)

    def _sort(self, elements: MutableSequence[T], scheduler: TaskScheduler) -> MutableSequence[T]:
        if len(elements) <= 1:
            return elements
        left, right = _split(elements)
        forked = scheduler.submit(self._sort, right, scheduler)
        try:
            self._sort(left, scheduler)
        except BaseException:
            # The right subtree must be stopped or finished before the error leaves this level.
            if not forked.cancel():
                with contextlib.suppress(Exception):
                    forked.join()
            raise
        forked.join()
        return merge(left, right, elements, cmp=self._cmp)


async def _sort_async(elements: MutableSequence[T], cmp: Optional[Comparator]) -> MutableSequence[T]:
    if len(elements) <= 1:
        return elements
    left, right = _split(elements)
    forked = asyncio.create_task(_sort_async(right, cmp))
    try:
        await _sort_async(left, cmp)
    except BaseException:
        forked.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await forked
        raise
    await forked
    return merge(left, right, elements, cmp=cmp)


async def sort_async(
    sequence: MutableSequence[T], *, cmp: Optional[Comparator] = None
) -> MutableSequence[T]:
    """Cooperative variant: the right half runs as an ``asyncio`` task."""

    _check_sequence(sequence)
    return await _sort_async(sequence, cmp)


def parallel_sort(
    sequence: MutableSequence[T],
    *,
    max_workers: Optional[int] = None,
    cmp: Optional[Comparator] = None,
) -> MutableSequence[T]:
    return ParallelMergeSorter(cmp=cmp, max_workers=max_workers).sort(sequence)


__all__ = [
    "Comparator",
    "ParallelMergeSorter",
    "fork_depth",
    "merge",
    "parallel_sort",
    "sort_async",
]
