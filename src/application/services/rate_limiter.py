"""
application.services.rate_limiter - Fixed-window request budget per caller.

Buckets live in the injected KeyValueStorePort as {count, resetAt}. The
window opens on a caller's first request; once now passes resetAt the
bucket starts over. Overwrite semantics, no locking.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from domain.exceptions import RateLimitExceeded
from domain.ports import KeyValueStorePort

logger = logging.getLogger(__name__)

_KEY_PREFIX = "ratelimit:"


class RateLimiter:
    """Allow at most max_per_window hits per key in each window."""

    def __init__(
        self,
        kv: KeyValueStorePort,
        window_seconds: float = 300,
        max_per_window: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self._kv = kv
        self._window_ms = int(window_seconds * 1000)
        self._max = max_per_window
        self._clock = clock

    async def hit(self, key: str) -> int:
        """Count one request for key.

        Returns:
            Requests remaining in the current window.

        Raises:
            RateLimitExceeded: when this request is over budget.
        """
        now = int(self._clock() * 1000)
        bucket = await self._kv.get(_KEY_PREFIX + key) or {
            "count": 0, "resetAt": now + self._window_ms,
        }
        if now > int(bucket["resetAt"]):
            bucket = {"count": 0, "resetAt": now + self._window_ms}
        bucket["count"] = int(bucket["count"]) + 1
        await self._kv.set(_KEY_PREFIX + key, bucket)

        if bucket["count"] > self._max:
            retry_after = max(1, math.ceil((int(bucket["resetAt"]) - now) / 1000))
            logger.warning(
                "Rate limit exceeded for %s (%d > %d)", key, bucket["count"], self._max,
            )
            raise RateLimitExceeded(key, retry_after)
        return self._max - bucket["count"]
