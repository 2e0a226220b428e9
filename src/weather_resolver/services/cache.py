"""In-memory caches for geocoding and provider results."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, TypeVar

from cachetools import Cache, LRUCache, TTLCache
from prometheus_client import Counter, Gauge

from weather_resolver.models import Coordinate

V = TypeVar("V")

# Metrics
cache_hits = Counter("cache_hits_total", "Total cache hits", ["cache"])
cache_misses = Counter("cache_misses_total", "Total cache misses", ["cache"])
cache_size_gauge = Gauge("cache_size", "Current number of cache entries", ["cache"])


def coordinate_key(coords: Coordinate) -> str:
    """Create cache key from coordinates.

    Rounds to 3 decimal places (about 110 m) so near-duplicate requests
    share an entry.
    """
    return f"{coords.latitude:.3f},{coords.longitude:.3f}"


class CacheService(Generic[V]):
    """Named string-keyed cache.

    With ``ttl_seconds`` set, entries expire lazily: an expired entry is
    reported as a miss on the next read, there is no background sweep.
    Without a TTL, entries live until the cache is cleared or the size
    bound evicts them.
    """

    def __init__(
        self,
        name: str,
        *,
        max_size: int,
        ttl_seconds: float | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._cache: Cache[str, V]
        if ttl_seconds is None:
            self._cache = LRUCache(maxsize=max_size)
        else:
            self._cache = TTLCache(maxsize=max_size, ttl=ttl_seconds, timer=timer)

    def get(self, key: str) -> V | None:
        """Get a cached value, or None on miss or expiry."""
        value: V | None = self._cache.get(key)
        if value is not None:
            cache_hits.labels(cache=self.name).inc()
            return value
        cache_misses.labels(cache=self.name).inc()
        return None

    def set(self, key: str, value: V) -> None:
        self._cache[key] = value
        cache_size_gauge.labels(cache=self.name).set(len(self._cache))

    def clear(self) -> None:
        """Clear all cache entries."""
        self._cache.clear()
        cache_size_gauge.labels(cache=self.name).set(0)

    @property
    def size(self) -> int:
        """Return current cache size."""
        return len(self._cache)

    def is_healthy(self) -> bool:
        """Check if cache is operational."""
        return self._cache is not None and isinstance(len(self._cache), int)
