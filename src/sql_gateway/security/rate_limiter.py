# src/sql_gateway/security/rate_limiter.py
import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Optional

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientInfo:
    """Identity of the caller used for rate limiting and audit logging."""

    ip: str
    user_agent: Optional[str] = None

    @property
    def rate_limit_key(self) -> str:
        return f"{self.ip}-{self.user_agent or 'unknown'}"


@dataclass(frozen=True)
class RateLimitDecision:
    """Admission decision for a single request."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int

    def headers(self) -> Dict[str, str]:
        """Standard RateLimit headers, plus Retry-After on rejection."""
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.retry_after),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """
    Counts requests per key inside a fixed window and rejects once the
    maximum is exceeded. Every request counts, whether it later succeeds or
    fails. Counting is delegated to the ``limits`` fixed window strategy
    over in-process memory storage, whose increments are atomic per key.
    """

    def __init__(self, window_ms: int = 900000, max_requests: int = 20):
        """
        Initialize the rate limiter.

        Args:
            window_ms (int): Window length in milliseconds, rounded up to whole seconds
            max_requests (int): Requests admitted per key and window
        """
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        if max_requests < 0:
            raise ValueError("max_requests must not be negative")

        self.window_ms = window_ms
        self.max_requests = max_requests
        self._item = RateLimitItemPerSecond(max_requests, max(1, math.ceil(window_ms / 1000)))
        self._storage = MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)

    def hit(self, key: str) -> RateLimitDecision:
        """
        Count one request for ``key`` and decide whether it is admitted.

        Args:
            key (str): Client key, e.g. ``ClientInfo.rate_limit_key``

        Returns:
            RateLimitDecision: Whether the request may proceed
        """
        allowed = self._strategy.hit(self._item, key)
        stats = self._strategy.get_window_stats(self._item, key)

        decision = RateLimitDecision(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(0, stats.remaining),
            retry_after=max(1, math.ceil(stats.reset_time - time.time()))
        )

        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {key}: retry after {decision.retry_after}s")

        return decision
