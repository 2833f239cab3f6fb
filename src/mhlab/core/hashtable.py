from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from mhlab.contracts.error import require_not_none
from mhlab.contracts.schema import DUMP_SCHEMA

logger = logging.getLogger("mhlab")

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_CAPACITY = 16
CAPACITY_MULTIPLIER = 2


@dataclass(slots=True)
class _Node(Generic[K, V]):
    key: K
    value: V
    next: Optional["_Node[K, V]"] = None


class HashTable(Generic[K, V]):
    """Separate-chaining hash table that doubles its bucket array when full.

    Buckets hold singly linked chains in insertion order. The table grows the
    moment an insert of a new key would push ``size`` past ``capacity``, so the
    load factor never exceeds 1.0 after a completed ``put``. Not thread-safe.
    """

    __slots__ = ("_buckets", "_size", "_resizes")

    def __init__(self, initial_capacity: int = DEFAULT_CAPACITY) -> None:
        if initial_capacity < 1 or (initial_capacity & (initial_capacity - 1)) != 0:
            raise ValueError("initial_capacity must be a power of two")
        self._buckets: List[Optional[_Node[K, V]]] = [None] * initial_capacity
        self._size = 0
        self._resizes = 0

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: object) -> bool:
        if key is None:
            return False
        return self._find(key) is not None

    def __repr__(self) -> str:
        return f"HashTable(size={self._size}, capacity={self.capacity})"

    @property
    def capacity(self) -> int:
        return len(self._buckets)

    @property
    def resize_count(self) -> int:
        return self._resizes

    def load_factor(self) -> float:
        return self._size / self.capacity

    def _index(self, key: Any) -> int:
        return abs(hash(key)) % len(self._buckets)

    def _find(self, key: Any) -> Optional[_Node[K, V]]:
        node = self._buckets[self._index(key)]
        while node is not None:
            if node.key == key:
                return node
            node = node.next
        return None

    def put(self, key: K, value: V) -> Optional[V]:
        """Insert or replace ``key``; return the replaced value or ``None``."""

        require_not_none(key, "key")
        require_not_none(value, "value")
        existing = self._find(key)
        if existing is not None:
            old = existing.value
            existing.value = value
            return old
        if self._size == len(self._buckets):
            self._grow()
        self._insert_new(key, value)
        return None

    def _insert_new(self, key: K, value: V) -> None:
        idx = self._index(key)
        node = self._buckets[idx]
        if node is None:
            self._buckets[idx] = _Node(key, value)
        else:
            while node.next is not None:
                node = node.next
            node.next = _Node(key, value)
        self._size += 1

    def _grow(self) -> None:
        old = self._buckets
        self._buckets = [None] * (len(old) * CAPACITY_MULTIPLIER)
        self._size = 0
        for head in old:
            node = head
            while node is not None:
                self.put(node.key, node.value)
                node = node.next
        self._resizes += 1
        logger.debug("HashTable resized %d -> %d (size=%d)", len(old), len(self._buckets), self._size)

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        require_not_none(key, "key")
        node = self._find(key)
        return default if node is None else node.value

    def items(self) -> Iterator[Tuple[K, V]]:
        for head in self._buckets:
            node = head
            while node is not None:
                yield node.key, node.value
                node = node.next

    def max_chain_length(self) -> int:
        longest = 0
        for head in self._buckets:
            length = 0
            node = head
            while node is not None:
                length += 1
                node = node.next
            longest = max(longest, length)
        return longest

    def dump(self) -> List[Tuple[int, List[Tuple[K, V]]]]:
        """Return ``(bucket_index, chain)`` for every bucket in ascending order."""

        out: List[Tuple[int, List[Tuple[K, V]]]] = []
        for idx, head in enumerate(self._buckets):
            chain: List[Tuple[K, V]] = []
            node = head
            while node is not None:
                chain.append((node.key, node.value))
                node = node.next
            out.append((idx, chain))
        return out

    def format_table(self) -> str:
        """Render the buckets as ``"0: k1:v1 -> k2:v2"`` lines."""

        lines = []
        for idx, chain in self.dump():
            rendered = " -> ".join(f"{key}:{value}" for key, value in chain)
            lines.append(f"{idx}: {rendered}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": DUMP_SCHEMA,
            "capacity": self.capacity,
            "size": self._size,
            "resize_count": self._resizes,
            "load_factor": self.load_factor(),
            "buckets": [
                {
                    "index": idx,
                    "chain": [{"key": str(key), "value": str(value)} for key, value in chain],
                }
                for idx, chain in self.dump()
            ],
        }


__all__ = ["CAPACITY_MULTIPLIER", "DEFAULT_CAPACITY", "HashTable"]
