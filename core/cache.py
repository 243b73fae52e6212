"""Tick-aged LRU cache for values that are cheap to store but costly to compute.

Entries expire once ``max_age`` ticks have passed since they were created,
and the least recently used entry is dropped when ``max_size`` is exceeded.
The current tick is always passed in explicitly; the cache never reads a
global clock.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, Tuple, TypeVar

_T = TypeVar("_T")

_MISSING = object()


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[_T]):
    data: _T
    max_age: int
    created: int

    def is_stale(self, now: int) -> bool:
        return now - self.created >= self.max_age


class TickCache(Generic[_T]):
    """LRU cache whose entries age in game ticks."""

    def __init__(self, max_age: int, max_size: int = 1000) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_age = max_age
        self.max_size = max_size
        self._entries: OrderedDict[Hashable, CacheEntry[_T]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get(self, key: Hashable, now: int, default: Optional[_T] = None) -> Optional[_T]:
        """Return a fresh cached value or ``default``."""

        entry = self._entries.get(key)
        if entry is None or entry.is_stale(now):
            return default
        self._entries.move_to_end(key)
        return entry.data

    def put(self, key: Hashable, value: _T, now: int) -> None:
        self._entries[key] = CacheEntry(data=value, max_age=self.max_age, created=now)
        self._entries.move_to_end(key)
        # Evict oldest if over capacity
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def get_or_compute(
        self,
        key: Hashable,
        now: int,
        generate: Callable[[], Tuple[_T, bool]],
    ) -> _T:
        """Return the cached value or compute it.

        ``generate`` returns ``(value, cacheable)``; values flagged as not
        cacheable are returned without being stored.
        """

        entry = self._entries.get(key, _MISSING)
        if entry is not _MISSING and not entry.is_stale(now):
            self._entries.move_to_end(key)
            return entry.data

        value, cacheable = generate()
        if cacheable:
            self.put(key, value, now)
        elif entry is not _MISSING:
            del self._entries[key]
        return value

    def collect_garbage(self, now: int) -> int:
        """Drop stale entries and return how many were removed."""

        stale = [key for key, entry in self._entries.items() if entry.is_stale(now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["CacheEntry", "TickCache"]
