"""Thread-safe caches with charge-based LRU eviction."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

EvictHook = Callable[[Any, Any], None]


class Cache(ABC, Generic[K, V]):
    """A thread-safe mapping that may drop old entries to make room for new ones.

    Each entry carries a ``charge`` counted against the cache capacity, for
    example the length of a variable-sized value.
    """

    @abstractmethod
    def insert(self, key: K, value: V, charge: int) -> Optional[V]:
        """Map ``key`` to ``value``; return the replaced value, if any."""

    @abstractmethod
    def get(self, key: K) -> Optional[V]:
        """Return the value for ``key``, or None when it is not cached."""

    @abstractmethod
    def erase(self, key: K) -> None:
        """Remove ``key`` if it is cached."""

    @abstractmethod
    def total_charge(self) -> int:
        """Sum of the charges of all cached entries."""


@dataclass
class _Entry(Generic[V]):
    value: V
    charge: int


class LRUCache(Cache[K, V]):
    """A cache evicting the least recently used entry once full.

    When a new key arrives while the total charge has reached ``capacity``,
    the least recently used entry is evicted first. ``evict_hook`` is called
    with ``(key, value)`` for every value that leaves the cache, whether it
    was evicted, erased or replaced.
    """

    def __init__(self, capacity: int, evict_hook: Optional[EvictHook] = None) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.capacity = capacity
        self.evict_hook = evict_hook
        self._lock = threading.Lock()
        # The last entry is the most recently used one.
        self._entries: OrderedDict[K, _Entry[V]] = OrderedDict()
        self._usage = 0

    def _notify(self, dropped: list[tuple[K, V]]) -> None:
        if self.evict_hook is not None:
            for key, value in dropped:
                self.evict_hook(key, value)

    def insert(self, key: K, value: V, charge: int) -> Optional[V]:
        if self.capacity <= 0:
            return None
        dropped: list[tuple[K, V]] = []
        old: Optional[V] = None
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                old = entry.value
                entry.value = value
                self._entries.move_to_end(key)
                dropped.append((key, old))
            else:
                if self._usage >= self.capacity and self._entries:
                    lru_key, lru_entry = self._entries.popitem(last=False)
                    self._usage -= lru_entry.charge
                    dropped.append((lru_key, lru_entry.value))
                self._entries[key] = _Entry(value, charge)
                self._usage += charge
        self._notify(dropped)
        return old

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
            return entry.value

    def erase(self, key: K) -> None:
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return
            self._usage -= entry.charge
        self._notify([(key, entry.value)])

    def total_charge(self) -> int:
        with self._lock:
            return self._usage

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ShardedCache(Cache[K, V]):
    """Spreads keys over several independent caches to reduce lock contention."""

    def __init__(self, shards: Sequence[Cache[K, V]]) -> None:
        if not shards:
            raise ValueError("a sharded cache needs at least one shard")
        self._shards = tuple(shards)

    def _shard(self, key: K) -> Cache[K, V]:
        return self._shards[hash(key) % len(self._shards)]

    def insert(self, key: K, value: V, charge: int) -> Optional[V]:
        return self._shard(key).insert(key, value, charge)

    def get(self, key: K) -> Optional[V]:
        return self._shard(key).get(key)

    def erase(self, key: K) -> None:
        self._shard(key).erase(key)

    def total_charge(self) -> int:
        return sum(shard.total_charge() for shard in self._shards)