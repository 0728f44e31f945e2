"""TTL cache for registry version listings."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry; ``expires_at`` None never expires."""

    value: T
    expires_at: Optional[float]
    created_at: float = field(default_factory=time.time)

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


class TTLCache:
    """Key/value cache with an optional time-to-live.

    Entries never expire on their own when ``default_ttl`` is None; callers
    then control staleness through :meth:`invalidate` and :meth:`clear`.
    The clock is injectable so tests can advance time deterministically.
    """

    def __init__(
        self,
        default_ttl: Optional[float] = None,
        max_entries: int = 5000,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds, None for no expiry.
            max_entries: Oldest entries are evicted beyond this size.
            clock: Function returning the current time in seconds.
        """
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._clock = clock
        self._cache: Dict[Hashable, CacheEntry[Any]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._cache[key]
            return None
        return entry.value

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        """Cache a value.

        Args:
            key: Cache key.
            value: Value to store.
            ttl: Optional TTL override in seconds.
        """
        now = self._clock()
        effective_ttl = ttl if ttl is not None else self._default_ttl
        expires_at = now + effective_ttl if effective_ttl is not None else None
        self._cache[key] = CacheEntry(value=value, expires_at=expires_at, created_at=now)

        if len(self._cache) > self._max_entries:
            self._evict_oldest(max(1, self._max_entries // 10))

    def invalidate(self, key: Hashable) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._cache)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        now = self._clock()
        expired_count = sum(1 for e in self._cache.values() if e.is_expired(now))
        return {
            "total_entries": len(self._cache),
            "expired_entries": expired_count,
            "active_entries": len(self._cache) - expired_count,
            "max_entries": self._max_entries,
            "default_ttl": self._default_ttl,
        }

    def _evict_oldest(self, count: int) -> None:
        """Evict the oldest entries."""
        sorted_keys = sorted(self._cache.keys(), key=lambda k: self._cache[k].created_at)
        for key in sorted_keys[:count]:
            del self._cache[key]
