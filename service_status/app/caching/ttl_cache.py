"""
In-process TTL cache for upstream query results.
"""

import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from shared.logging import get_logger


T = TypeVar("T")

DEFAULT_TTL_MS = 60_000

# Timestamp assigned on invalidation; no clock reading is ever within TTL of it.
_NEVER_FRESH = -math.inf


@dataclass
class CacheEntry(Generic[T]):
    """Cached value and the clock reading at which it was stored."""

    value: Optional[T] = None
    fetched_at: float = _NEVER_FRESH

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return self.value is not None and now - self.fetched_at < ttl_seconds


class TTLCache(Generic[T]):
    """Keyed cache with a single TTL fixed at construction.

    Each key holds one entry (one per logical query type). Entries are
    replaced wholesale by ``set`` and made stale by ``invalidate``; the
    previous value is kept for ``peek`` but never served by ``get``.
    No locking: concurrent misses on the same key each refresh upstream.
    """

    def __init__(self, ttl_ms: int = DEFAULT_TTL_MS, *, clock: Callable[[], float] = time.monotonic):
        if ttl_ms < 0:
            raise ValueError("ttl_ms must be non-negative")
        self.ttl_ms = ttl_ms
        self._ttl_seconds = ttl_ms / 1000.0
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self.logger = get_logger("status.cache")

    def get(self, key: str) -> Optional[T]:
        """Return the cached value for ``key`` only while it is fresh."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock(), self._ttl_seconds):
            return None
        return entry.value

    def set(self, key: str, value: T) -> None:
        """Store ``value`` under ``key`` stamped with the current time."""
        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())
        self.logger.debug("Cached value", key=key, ttl_ms=self.ttl_ms)

    def invalidate(self, key: str) -> None:
        """Force the next ``get(key)`` to miss regardless of age."""
        entry = self._entries.get(key)
        if entry is not None:
            entry.fetched_at = _NEVER_FRESH

    def invalidate_all(self) -> None:
        for key in self._entries:
            self.invalidate(key)
        self.logger.info("Invalidated cache", keys=sorted(self._entries))

    def peek(self, key: str) -> Optional[T]:
        """Last stored value for ``key``, fresh or not."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def stats(self) -> Dict[str, Any]:
        """Per-key freshness snapshot for diagnostics."""
        now = self._clock()
        entries: Dict[str, Any] = {}
        for key, entry in self._entries.items():
            age_ms = None
            if math.isfinite(entry.fetched_at):
                age_ms = round((now - entry.fetched_at) * 1000, 1)
            entries[key] = {
                "fresh": entry.is_fresh(now, self._ttl_seconds),
                "has_value": entry.value is not None,
                "age_ms": age_ms,
            }
        return {"ttl_ms": self.ttl_ms, "entries": entries}
