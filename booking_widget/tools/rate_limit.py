"""
Per-client rate limiting for public widget bookings.

The booking endpoint is reachable by anonymous visitors, so each client key
(usually the caller's IP address) gets a fixed number of booking attempts
per sliding window. Limits come from ``settings.rate_limit``; a limit of 0
disables the check.
"""

import logging
import math
import time
from collections import defaultdict, deque
from typing import Callable, Optional

from booking_widget.config import settings

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """In-process sliding window. Denied attempts do not count toward the limit."""

    def __init__(
        self,
        limit: int,
        window_sec: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_sec = window_sec
        self._clock = clock
        self._hits: dict[str, deque[float]] = defaultdict(deque)

    def check(self, key: str) -> tuple[bool, Optional[int]]:
        """Record an attempt for ``key``. Returns (allowed, retry_after_seconds)."""
        if self.limit <= 0:
            return True, None

        now = self._clock()
        hits = self._hits[key]
        while hits and now - hits[0] >= self.window_sec:
            hits.popleft()

        if len(hits) >= self.limit:
            retry_after = math.ceil(self.window_sec - (now - hits[0]))
            logger.warning("Rate limit hit for %s, retry in %ss", key, retry_after)
            return False, retry_after

        hits.append(now)
        return True, None

    def reset(self) -> None:
        self._hits.clear()


booking_limiter = SlidingWindowRateLimiter(
    settings.rate_limit.max_bookings, settings.rate_limit.window_sec
)
