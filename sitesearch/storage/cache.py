"""In-memory LRU cache with a sliding expiry window."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")

_MISSING = object()


@dataclass
class _Entry(Generic[V]):
    value: V
    last_access: float


class ExpiringLRUCache(Generic[V]):
    """
    Bounded key -> value cache.

    When full, the least recently used entry is evicted. An entry also
    expires `ttl` seconds after it was last written or read (reads
    slide the window). Nothing invalidates entries when the data they
    were computed from changes; callers accept staleness up to `ttl`.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._max_size = max_size
        self._ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[Hashable, _Entry[V]] = OrderedDict()
        self._lock = threading.Lock()

    def _lookup(self, key: Hashable, now: float):
        """Return the live value for key, refreshing it, or _MISSING. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        if now - entry.last_access > self._ttl:
            del self._entries[key]
            return _MISSING
        entry.last_access = now
        self._entries.move_to_end(key)
        return entry.value

    def _store(self, key: Hashable, value: V, now: float) -> None:
        self._entries[key] = _Entry(value=value, last_access=now)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)

    def get(self, key: Hashable, default: Optional[V] = None) -> Optional[V]:
        """Return the cached value, or *default* if missing or expired."""
        with self._lock:
            value = self._lookup(key, self._clock())
        return default if value is _MISSING else value

    def put(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._store(key, value, self._clock())

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        """
        Return the cached value, computing and storing it on a miss.

        `compute` runs outside the lock; two threads missing on the same
        key may both compute, and the last one to finish wins.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = compute()
        self.put(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        """Number of stored entries, expired ones included until next touched."""
        with self._lock:
            return len(self._entries)

    def __bool__(self) -> bool:
        # An empty cache is still a cache
        return True
