# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Sliding-window rate limiter for client-side request throttling.

The limiter keeps the timestamps of recent admissions and bounds how many may
fall inside any trailing window. It never rejects: callers over the limit are
suspended until the oldest admission leaves the window.

Concurrency:
    The prune-then-append step contains no await, so under asyncio it is
    atomic with respect to other coroutines sharing the limiter. Concurrent
    callers that wake up together re-run the full check, and only those that
    still fit are admitted.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

# Floor for one suspension. A wait below the clock resolution would not move
# the clock forward, and the recheck would see the same full window.
MIN_SLEEP = 0.001


class RateLimiter:
    """
    Admission control bounding requests per rolling time window.

    One instance is owned by each executor and shared by every call made
    through it. There is no module-level state: two executors never throttle
    each other.

    Attributes:
        limit: Maximum admissions per window
        window: Window duration in seconds

    Example:
        >>> limiter = RateLimiter(limit=2, window=60.0)
        >>> await limiter.acquire()  # admitted immediately
        >>> await limiter.acquire()  # admitted immediately
        >>> await limiter.acquire()  # suspends until the first leaves the window
    """

    def __init__(
        self,
        limit: int = 1000,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the rate limiter.

        Args:
            limit: Maximum admissions per window (at least 1)
            window: Window duration in seconds (positive)
            clock: Monotonic time source, injectable for tests
            sleep: Suspension primitive, injectable for tests
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")

        self.limit = limit
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._admissions: deque[float] = deque()

    def _expires_in(self, stamp: float, now: float) -> float:
        """Seconds until an admission recorded at ``stamp`` leaves the window."""
        return self.window - (now - stamp)

    def _prune(self, now: float) -> None:
        # Same expression as the wait in _try_admit: a kept admission always
        # has a positive wait.
        while self._admissions and self._expires_in(self._admissions[0], now) <= 0:
            self._admissions.popleft()

    def _try_admit(self) -> float | None:
        """
        Prune the window and admit if there is room.

        Returns:
            None if admitted, otherwise the seconds (always > 0) until the
            oldest admission leaves the window
        """
        now = self._clock()
        self._prune(now)
        if len(self._admissions) < self.limit:
            self._admissions.append(now)
            return None
        return self._expires_in(self._admissions[0], now)

    async def acquire(self) -> float:
        """
        Suspend until an admission is granted.

        Returns:
            Total seconds spent suspended
        """
        waited = 0.0
        while True:
            wait = self._try_admit()
            if wait is None:
                if waited:
                    logger.debug(f"Admission granted after {waited:.3f}s throttle")
                return waited
            logger.debug(
                f"Rate limit reached ({self.limit}/{self.window}s), "
                f"suspending {wait:.3f}s"
            )
            started = self._clock()
            await self._sleep(max(wait, MIN_SLEEP))
            waited += self._clock() - started

    def in_window(self) -> int:
        """Number of admissions currently inside the window."""
        self._prune(self._clock())
        return len(self._admissions)

    def reset(self) -> None:
        """Forget all recorded admissions."""
        self._admissions.clear()


__all__ = ["MIN_SLEEP", "RateLimiter"]
