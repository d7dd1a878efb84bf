"""In-memory TTL cache for scrape results."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from ntvsports.settings import CACHE_TTL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    created: float


class TTLCache:
    """Time-bounded memoization keyed by any hashable.

    Entries are replaced whole, never mutated, so readers always see either
    the old or the new value. ``get_or_load`` lets only one caller per key
    run the loader; concurrent callers wait and reuse its result.
    """

    def __init__(self, ttl: float = CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[Hashable, threading.Lock] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.created < self.ttl

    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or None if missing or stale."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self.is_fresh(entry):
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        """Store a value. Stale entries under other keys are dropped first."""
        self.purge_expired()
        self._entries[key] = CacheEntry(value=value, created=self.clock())

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is not None:
            return value

        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        try:
            with key_lock:
                # Another caller may have loaded it while we waited
                value = self.get(key)
                if value is not None:
                    return value
                logger.debug("Cache miss for %r, loading", key)
                value = loader()
                self.set(key, value)
                return value
        finally:
            with self._lock:
                if self._key_locks.get(key) is key_lock and not key_lock.locked():
                    del self._key_locks[key]

    def purge_expired(self) -> int:
        """Drop stale entries. Returns how many were removed."""
        stale = [k for k, e in list(self._entries.items()) if not self.is_fresh(e)]
        for key in stale:
            self._entries.pop(key, None)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        with self._lock:
            self._key_locks.clear()
