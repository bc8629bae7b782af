"""Per-user sliding-window rate limiting for sample uploads.

Attempts are kept in process memory, so limits apply per API worker.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import deque
from collections.abc import Callable

from sounddrop.services.errors import RateLimitedError
from sounddrop.settings import get_settings

logger = logging.getLogger(__name__)

UPLOAD_WINDOW_SECONDS = 3600


class SlidingWindowRateLimiter:
    def __init__(
        self,
        *,
        max_events: int,
        window_seconds: float = UPLOAD_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    def _live_events(self, key: str, now: float) -> deque[float]:
        """Events of ``key`` still inside the window; empty windows are forgotten."""
        events = self._events.get(key)
        if events is None:
            return deque()
        while events and now - events[0] >= self.window_seconds:
            events.popleft()
        if not events:
            del self._events[key]
        return events

    def _ensure_capacity(self, key: str, events: deque[float], now: float) -> None:
        if len(events) >= self.max_events:
            retry_after = max(1, math.ceil(self.window_seconds - (now - events[0])))
            logger.info("Upload rate limit reached for user %s", key)
            raise RateLimitedError(
                f"Upload limit exceeded. Maximum {self.max_events} uploads per hour.",
                retry_after=retry_after,
            )

    async def check(self, key: str) -> None:
        """Raise :class:`RateLimitedError` when ``key`` has no attempts left."""

        async with self._lock:
            now = self._clock()
            self._ensure_capacity(key, self._live_events(key, now), now)

    async def acquire(self, key: str) -> None:
        """Check and consume one attempt for ``key`` in a single step."""

        async with self._lock:
            now = self._clock()
            events = self._live_events(key, now)
            self._ensure_capacity(key, events, now)
            events.append(now)
            self._events[key] = events

    @property
    def tracked_keys(self) -> int:
        return len(self._events)

    def reset(self) -> None:
        self._events.clear()


_upload_limiter: SlidingWindowRateLimiter | None = None


def get_upload_rate_limiter() -> SlidingWindowRateLimiter:
    """Return the process-wide upload limiter configured from settings."""

    global _upload_limiter
    if _upload_limiter is None:
        _upload_limiter = SlidingWindowRateLimiter(
            max_events=get_settings().upload_rate_limit_per_hour
        )
    return _upload_limiter


__all__ = [
    "SlidingWindowRateLimiter",
    "UPLOAD_WINDOW_SECONDS",
    "get_upload_rate_limiter",
]
