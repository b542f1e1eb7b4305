"""In-memory expire-after-access cache used for project reads.

Designed for a single process: minimal dependencies, thread-safe, and easy
to swap for Redis while keeping the same interface and behaviors.

Semantics:
- An entry expires when it has not been read for ``ttl_seconds``.
- When the store grows past ``max_entries`` the least recently accessed
  entry is evicted (ties resolve to the oldest insertion).
- ``get_or_load`` is read-through. A load that races with an invalidation
  is returned to its caller but never stored, so a read that starts after
  a write's invalidation always goes back to the loader.
- Reads and writes share one lock. A hit refreshes the access time and the
  LRU position, so concurrent readers are serialized; the critical section
  does no I/O and never awaits.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Container for cached values with access metadata."""

    value: V
    inserted_at: float
    last_accessed_at: float


class SimpleTTLCache(Generic[K, V]):
    """Thread-safe, in-memory cache with expire-after-access and LRU eviction.

    Attributes:
        name: Label used in log events.
        ttl_seconds: Idle time after which an entry expires.
        max_entries: Maximum number of cached items (None for unlimited).
    """

    def __init__(
        self,
        name: str,
        *,
        ttl_seconds: float = 600,
        max_entries: int | None = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.name = name
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        # Ordered by last access: the first item is the eviction candidate.
        self._store: OrderedDict[K, CacheEntry[V]] = OrderedDict()
        self._lock = threading.RLock()
        self._generation = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"SimpleTTLCache(name={self.name!r}, ttl_seconds={self._ttl}, "
            f"max_entries={self._max_entries}, size={len(self._store)}, hits={self._hits}, "
            f"misses={self._misses}, evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._store.get(key)  # type: ignore[arg-type]
            return entry is not None and not self._is_expired(entry, self._clock())

    def get(self, key: K) -> V | None:
        """Return the cached value and refresh its access time, or None.

        Takes the cache lock, so readers queue behind each other and behind
        writers.
        """

        with self._lock:
            now = self._clock()
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache": self.name, "cache_key": str(key), "reason": "not_found"})
                return None

            if self._is_expired(entry, now):
                self._evict_single(key)
                self._misses += 1
                logger.debug("cache.miss", extra={"cache": self.name, "cache_key": str(key), "reason": "expired"})
                return None

            self._hits += 1
            entry.last_accessed_at = now
            self._store.move_to_end(key)
            logger.debug("cache.hit", extra={"cache": self.name, "cache_key": str(key)})
            return entry.value

    def set(self, key: K, value: V) -> None:
        """Store a value, evicting expired and over-capacity entries."""

        with self._lock:
            self._set_locked(key, value)

    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        """Read-through lookup.

        On a hit the cached value is returned. On a miss ``loader`` is awaited
        outside the lock and its result stored, unless an invalidation happened
        while it ran. Exceptions from ``loader`` propagate and nothing is cached.
        """

        with self._lock:
            cached = self.get(key)
            if cached is not None:
                return cached
            generation = self._generation

        value = await loader()

        with self._lock:
            if generation == self._generation:
                self._set_locked(key, value)
            else:
                logger.debug(
                    "cache.store_skipped",
                    extra={"cache": self.name, "cache_key": str(key), "reason": "invalidated_during_load"},
                )
        return value

    def invalidate(self, key: K) -> None:
        """Drop a single entry."""

        with self._lock:
            self._generation += 1
            self._store.pop(key, None)
            logger.debug("cache.invalidate", extra={"cache": self.name, "cache_key": str(key)})

    def invalidate_all(self) -> None:
        """Drop every entry, keeping counters."""

        with self._lock:
            self._generation += 1
            self._store.clear()
            logger.debug("cache.invalidate_all", extra={"cache": self.name})

    def purge_expired(self) -> int:
        """Remove expired entries; returns how many were evicted."""

        with self._lock:
            return self._evict_expired_locked()

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._generation += 1
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | float | str | None]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "name": self.name,
                "ttl_seconds": self._ttl,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _set_locked(self, key: K, value: V) -> None:
        now = self._clock()
        self._evict_expired_locked()
        existing = self._store.get(key)
        inserted_at = existing.inserted_at if existing is not None else now
        self._store[key] = CacheEntry(value=value, inserted_at=inserted_at, last_accessed_at=now)
        self._store.move_to_end(key)
        self._evict_if_over_capacity_locked()

        logger.debug(
            "cache.set",
            extra={"cache": self.name, "cache_key": str(key), "size": len(self._store)},
        )

    def _evict_single(self, key: K) -> None:
        if self._store.pop(key, None) is not None:
            self._evictions += 1

    def _evict_expired_locked(self) -> int:
        now = self._clock()
        expired_keys = [k for k, entry in self._store.items() if self._is_expired(entry, now)]
        for key in expired_keys:
            self._evict_single(key)
        return len(expired_keys)

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._store) > self._max_entries:
            key, _ = self._store.popitem(last=False)
            self._evictions += 1
            logger.debug("cache.evict", extra={"cache": self.name, "cache_key": str(key), "reason": "capacity"})

    def _is_expired(self, entry: CacheEntry[V], now: float) -> bool:
        return now - entry.last_accessed_at > self._ttl
