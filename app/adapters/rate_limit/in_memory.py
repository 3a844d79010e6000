"""In-memory rate limiters.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a lock guards all shared state.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


def _validate_limits(limit: int, window_seconds: float) -> None:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if window_seconds <= 0:
        raise ValueError("window_seconds must be > 0")


def _validate_consume_args(key: str, cost: int) -> None:
    if cost < 1:
        raise ValueError("cost must be >= 1")
    if not key:
        raise ValueError("key must be a non-empty string")


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using an epoch-aligned fixed window per key.

    Cheap, but a burst straddling a window boundary can get up to twice the
    limit through within one window length.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        _validate_limits(limit, window_seconds)

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}
        self._swept_window_start: float | None = None

    def _sweep_expired_locked(self, window_start: float) -> None:
        # At most one sweep per window; keys idle since an earlier window are dropped
        if self._swept_window_start == window_start:
            return
        self._swept_window_start = window_start
        expired = [k for k, s in self._state_by_key.items() if s.window_start < window_start]
        for key in expired:
            del self._state_by_key[key]

    def _get_or_reset_state(self, key: str, window_start: float) -> _WindowState:
        state = self._state_by_key.get(key)
        if state is None or state.window_start != window_start:
            state = _WindowState(window_start=window_start, count=0)
            self._state_by_key[key] = state
        return state

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume budget for ``key`` in the current fixed window.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        _validate_consume_args(key, cost)

        now = self._clock()
        window_start = (now // self._window_seconds) * self._window_seconds
        reset_at = window_start + self._window_seconds

        with self._lock:
            self._sweep_expired_locked(window_start)
            state = self._get_or_reset_state(key, window_start)

            if state.count + cost <= self._limit:
                state.count += cost
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=max(0, self._limit - state.count),
                    reset_at=reset_at,
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - state.count),
                reset_at=reset_at,
                retry_after_seconds=max(0.0, reset_at - now),
            )

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._state_by_key.clear()
            else:
                self._state_by_key.pop(key, None)


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping a rolling log of call timestamps per key.

    A call is allowed when fewer than ``limit`` units were consumed in the
    ``window_seconds`` preceding it, so no burst of ``limit + 1`` calls can
    fit inside any window-length interval.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of allowed units per rolling window.
            window_seconds: Length of the rolling window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        _validate_limits(limit, window_seconds)

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._hits_by_key: dict[str, deque[float]] = {}
        self._next_sweep_at: float | None = None

    def _sweep_idle_locked(self, now: float) -> None:
        # At most one sweep per window length; drops keys whose newest hit aged out
        if self._next_sweep_at is not None and now < self._next_sweep_at:
            return
        self._next_sweep_at = now + self._window_seconds
        cutoff = now - self._window_seconds
        idle = [k for k, hits in self._hits_by_key.items() if not hits or hits[-1] <= cutoff]
        for key in idle:
            del self._hits_by_key[key]

    def _prune_locked(self, key: str, now: float) -> deque[float]:
        hits = self._hits_by_key.get(key)
        if hits is None:
            return deque()
        cutoff = now - self._window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            # Keys only live while they hold hits inside the window
            del self._hits_by_key[key]
        return hits

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume budget for ``key`` within the rolling window.

        Blocked calls are not recorded, so a client hammering the limiter
        does not push its own reset time further out.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        _validate_consume_args(key, cost)

        now = self._clock()

        with self._lock:
            self._sweep_idle_locked(now)
            hits = self._prune_locked(key, now)

            if len(hits) + cost <= self._limit:
                hits.extend([now] * cost)
                self._hits_by_key[key] = hits
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - len(hits),
                    reset_at=hits[0] + self._window_seconds,
                    retry_after_seconds=None,
                )

            # Budget frees up once enough of the oldest hits age out
            needed = len(hits) + cost - self._limit
            if needed <= len(hits):
                reset_at = hits[needed - 1] + self._window_seconds
            else:
                reset_at = now + self._window_seconds
            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - len(hits)),
                reset_at=reset_at,
                retry_after_seconds=max(0.0, reset_at - now),
            )

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._hits_by_key.clear()
            else:
                self._hits_by_key.pop(key, None)
