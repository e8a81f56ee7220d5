"""Sliding-window rate limiter for AI calls."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class RateLimitExceeded(Exception):
    """The per-scan call budget is spent; no amount of waiting helps."""


class RateLimiter:
    """At most *max_calls_per_minute* in any 60s window and *max_calls_per_scan* total.

    ``wait_if_needed`` is serialised by an asyncio lock. Cancelling a waiting
    task leaves the recorded window untouched.
    """

    def __init__(
        self,
        max_calls_per_minute: int = 20,
        max_calls_per_scan: int = 50,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_calls_per_minute = max_calls_per_minute
        self.max_calls_per_scan = max_calls_per_scan
        self._clock = clock
        self._sleep = sleep
        self._timestamps: List[float] = []
        self._total_calls = 0
        self._lock = asyncio.Lock()

    def _prune(self, now: float) -> None:
        self._timestamps = [t for t in self._timestamps if now - t < WINDOW_SECONDS]

    def can_make_call(self) -> bool:
        self._prune(self._clock())
        return (
            len(self._timestamps) < self.max_calls_per_minute
            and self._total_calls < self.max_calls_per_scan
        )

    def record_call(self) -> None:
        self._timestamps.append(self._clock())
        self._total_calls += 1

    async def wait_if_needed(self) -> None:
        """Block until a call is allowed. Raises RateLimitExceeded past the scan cap."""
        async with self._lock:
            while True:
                if self._total_calls >= self.max_calls_per_scan:
                    raise RateLimitExceeded(
                        f"AI call limit of {self.max_calls_per_scan} per scan reached"
                    )
                now = self._clock()
                self._prune(now)
                if len(self._timestamps) < self.max_calls_per_minute:
                    return
                delay = WINDOW_SECONDS - (now - self._timestamps[0])
                logger.info("AI rate limit reached, waiting %.1fs", delay)
                await self._sleep(max(delay, 0.0))

    def reset(self) -> None:
        self._timestamps = []
        self._total_calls = 0

    def get_stats(self) -> Dict[str, int]:
        self._prune(self._clock())
        return {
            "calls_this_minute": len(self._timestamps),
            "total_calls": self._total_calls,
        }
