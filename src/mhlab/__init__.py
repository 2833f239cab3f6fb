"""Fork/join merge sort and resizable chained hash table."""

from . import contracts, core
from .core import HashTable, ParallelMergeSorter, parallel_sort, sort_async

__all__ = [
    "HashTable",
    "ParallelMergeSorter",
    "contracts",
    "core",
    "parallel_sort",
    "sort_async",
]
