"""
Fixed-window rate limiting keyed by client identity.

Counting is done by the ``limits`` package (the engine behind slowapi).  The
storage backend is passed in explicitly, so tests get an isolated
MemoryStorage and a deployment can point RATE_LIMIT_STORAGE_URI at a shared
one (e.g. ``redis://``) without touching the limiter.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Optional

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter as FixedWindowStrategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int  # whole seconds until the window resets, 0 if allowed
    reset_at: float   # epoch seconds when the current window ends
    reset_in: int     # whole seconds until reset, as of the decision

    def headers(self) -> Dict[str, str]:
        """Standard RateLimit-* response headers (plus Retry-After when blocked)."""
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_in),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


def create_storage(uri: str = "memory://") -> Storage:
    """
    Build a ``limits`` storage backend from a URI.

    ``memory://`` is process-local; ``redis://host:6379`` and friends share
    counters between workers (and need the matching client library).
    """
    return storage_from_string(uri)


class FixedWindowRateLimiter:
    """
    Allow at most ``max_requests`` per identity per ``window_seconds``.

    Every call to hit() counts, whether or not the request later succeeds,
    so failed attempts cannot be retried to get around the limit.
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float,
        storage: Optional[Storage] = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.name = name
        self.max_requests = max_requests
        # limits counts in whole seconds
        self.window_seconds = max(1, math.ceil(window_seconds))
        self.storage = storage if storage is not None else MemoryStorage()
        self._item = RateLimitItemPerSecond(self.max_requests, self.window_seconds)
        self._strategy = FixedWindowStrategy(self.storage)

    def hit(self, identity: str) -> RateLimitDecision:
        """Record one request from ``identity`` and decide whether to allow it."""
        # The limiter name namespaces the key so limiters can share a storage
        allowed = self._strategy.hit(self._item, self.name, identity)
        stats = self._strategy.get_window_stats(self._item, self.name, identity)
        now = time.time()
        reset_at = float(stats.reset_time)
        reset_in = max(0, math.ceil(reset_at - now))

        if not allowed:
            retry_after = max(1, reset_in)
            logger.warning(
                "Rate limit '%s' exceeded for %s (%d/%ds), retry in %ds",
                self.name,
                identity,
                self.max_requests,
                self.window_seconds,
                retry_after,
            )
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                retry_after=retry_after,
                reset_at=reset_at,
                reset_in=reset_in,
            )

        return RateLimitDecision(
            allowed=True,
            limit=self.max_requests,
            remaining=max(0, stats.remaining),
            retry_after=0,
            reset_at=reset_at,
            reset_in=reset_in,
        )

    def reset(self, identity: str) -> None:
        self._strategy.clear(self._item, self.name, identity)
