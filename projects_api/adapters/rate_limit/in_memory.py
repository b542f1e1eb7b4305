"""In-memory token bucket rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Interval refill: a bucket is topped up to full capacity once a whole
  refill interval has elapsed since its last refill; partial refills never
  accumulate.
- Thread-safe: the bucket map has its own lock for insert-if-absent and LRU
  pruning, each bucket has a lock around refill-and-consume.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from typing import Callable

from projects_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


class TokenBucket:
    """A single client's bucket.

    Invariant: ``0 <= tokens_available <= capacity``.
    """

    __slots__ = ("capacity", "refill_amount", "refill_interval", "tokens_available", "last_refill_at", "_lock")

    def __init__(self, *, capacity: int, refill_amount: int, refill_interval: float, now: float) -> None:
        self.capacity = capacity
        self.refill_amount = refill_amount
        self.refill_interval = refill_interval
        self.tokens_available = capacity
        self.last_refill_at = now
        self._lock = threading.Lock()

    def try_consume(self, n: int, now: float) -> RateLimitResult:
        with self._lock:
            if now - self.last_refill_at >= self.refill_interval:
                self.tokens_available = min(self.capacity, self.tokens_available + self.refill_amount)
                self.last_refill_at = now

            if self.tokens_available >= n:
                self.tokens_available -= n
                return RateLimitResult(
                    allowed=True,
                    limit=self.capacity,
                    remaining=self.tokens_available,
                    retry_after_seconds=0,
                )

            wait = self.last_refill_at + self.refill_interval - now
            return RateLimitResult(
                allowed=False,
                limit=self.capacity,
                remaining=self.tokens_available,
                retry_after_seconds=max(1, int(math.ceil(wait))),
            )


class InMemoryTokenBucketRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping one token bucket per client key.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        capacity: int,
        refill_interval_seconds: float,
        refill_amount: int | None = None,
        max_keys: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            capacity: Maximum number of tokens per bucket.
            refill_interval_seconds: Seconds between full refills.
            refill_amount: Tokens restored per interval (defaults to capacity).
            max_keys: Maximum tracked keys; least recently used buckets are
                pruned beyond it. None disables pruning.
            clock: Monotonic time source returning seconds.

        Raises:
            ValueError: If any numeric argument is invalid.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if refill_interval_seconds <= 0:
            raise ValueError("refill_interval_seconds must be > 0")
        if refill_amount is not None and refill_amount < 1:
            raise ValueError("refill_amount must be >= 1")
        if max_keys is not None and max_keys < 1:
            raise ValueError("max_keys must be >= 1")

        self._capacity = capacity
        self._refill_interval = refill_interval_seconds
        self._refill_amount = refill_amount or capacity
        self._max_keys = max_keys
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: OrderedDict[str, TokenBucket] = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _resolve_bucket(self, key: str, now: float) -> TokenBucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(
                    capacity=self._capacity,
                    refill_amount=self._refill_amount,
                    refill_interval=self._refill_interval,
                    now=now,
                )
                self._buckets[key] = bucket
                self._prune_locked()
            else:
                self._buckets.move_to_end(key)
            return bucket

    def _prune_locked(self) -> None:
        if self._max_keys is None:
            return
        while len(self._buckets) > self._max_keys:
            pruned_key, _ = self._buckets.popitem(last=False)
            logger.debug("rate_limit.bucket_pruned", extra={"key": pruned_key})

    def try_consume(self, key: str, n: int = 1) -> RateLimitResult:
        """Refill if due, then consume ``n`` tokens from ``key``'s bucket.

        Raises:
            ValueError: If key is empty or n is invalid.
        """
        if n < 1:
            raise ValueError("n must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        bucket = self._resolve_bucket(key, now)
        return bucket.try_consume(n, now)
