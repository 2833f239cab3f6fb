from .hashtable import CAPACITY_MULTIPLIER, DEFAULT_CAPACITY, HashTable
from .mergesort import ParallelMergeSorter, fork_depth, merge, parallel_sort, sort_async
from .scheduler import (
    SCHEDULER_KINDS,
    InlineScheduler,
    TaskHandle,
    TaskScheduler,
    ThreadPoolScheduler,
    create_scheduler,
)

__all__ = [
    "CAPACITY_MULTIPLIER",
    "DEFAULT_CAPACITY",
    "HashTable",
    "InlineScheduler",
    "ParallelMergeSorter",
    "SCHEDULER_KINDS",
    "TaskHandle",
    "TaskScheduler",
    "ThreadPoolScheduler",
    "create_scheduler",
    "fork_depth",
    "merge",
    "parallel_sort",
    "sort_async",
]
