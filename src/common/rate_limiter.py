from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque


class RateLimitError(RuntimeError):
    """Raised when a non-blocking acquire would exceed the rate limit."""


@dataclass
class _WindowConfig:
    max_calls: int
    per_seconds: float


class SlidingWindowRateLimiter:
    """
    Sliding-window limiter for coroutines sharing one event loop.

    - At most `max_calls` permits are granted within any `per_seconds` window.
    - `await acquire()` suspends until a slot opens.
    - `try_acquire()` raises `RateLimitError` when no slot is free right now.

    Local to one client; nothing is coordinated with other processes.
    """

    def __init__(self, max_calls: int, per_seconds: float, *, clock=time.monotonic):
        if max_calls <= 0:
            raise ValueError("max_calls must be > 0")
        if per_seconds <= 0:
            raise ValueError("per_seconds must be > 0")
        self._cfg = _WindowConfig(max_calls=max_calls, per_seconds=per_seconds)
        self._events: Deque[float] = deque()
        self._clock = clock

    def _prune(self, now: float) -> None:
        window_start = now - self._cfg.per_seconds
        while self._events and self._events[0] <= window_start:
            self._events.popleft()

    def _next_available_delay(self, now: float) -> float:
        if len(self._events) < self._cfg.max_calls:
            return 0.0
        oldest = self._events[0]
        return max(0.0, (oldest + self._cfg.per_seconds) - now)

    def _claim(self) -> float:
        """Take a slot if one is free; otherwise return the wait in seconds."""
        now = self._clock()
        self._prune(now)
        delay = self._next_available_delay(now)
        if delay == 0.0:
            self._events.append(now)
        return delay

    def try_acquire(self) -> None:
        if self._claim() > 0.0:
            raise RateLimitError("rate limit exceeded; no slot available")

    async def acquire(self) -> None:
        while True:
            delay = self._claim()
            if delay == 0.0:
                return
            await asyncio.sleep(min(delay, 1.0))
