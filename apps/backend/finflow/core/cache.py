from __future__ import annotations

import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Hashable

from .config import settings


class OccurrenceCache:
    """Process-local read-through memo for occurrence listings.

    Keys are tuples whose first element is the owning ``user_id`` so that a
    write can drop every entry of that user at once. Entries expire after
    ``ttl`` seconds and the oldest entry is evicted beyond ``max_entries``.
    """

    def __init__(
        self,
        ttl: float = 300,
        max_entries: int = 100,
        *,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self.enabled = enabled
        self._clock = clock
        self._entries: OrderedDict[tuple[Hashable, ...], tuple[float, Any]] = OrderedDict()
        self._lock = Lock()

    def get(self, key: tuple[Hashable, ...]) -> Any | None:
        if not self.enabled:
            return None
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            stored_at, value = item
            if self._clock() - stored_at > self.ttl:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return value

    def set(self, key: tuple[Hashable, ...], value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def invalidate_user(self, user_id: int) -> int:
        """Drop every entry owned by ``user_id``; returns how many were removed."""
        with self._lock:
            stale = [key for key in self._entries if key and key[0] == user_id]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


occurrence_cache = OccurrenceCache(
    ttl=settings.CACHE_TTL_SECONDS,
    max_entries=settings.CACHE_MAX_ENTRIES,
    enabled=settings.CACHE_ENABLED,
)


def get_occurrence_cache() -> OccurrenceCache:
    return occurrence_cache
