"""Rate limiter interfaces.

Routes reach the limiter through this interface only, so a bucket store shared
across workers can replace the in-memory one without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Bucket capacity.
        remaining: Tokens left in the bucket after this decision.
        retry_after_seconds: Whole seconds until the next refill (0 when allowed).
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def try_consume(self, key: str, n: int = 1) -> RateLimitResult:
        """Consume ``n`` tokens from the bucket identified by ``key``.

        Args:
            key: Client identity (e.g., IP address).
            n: Tokens to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
