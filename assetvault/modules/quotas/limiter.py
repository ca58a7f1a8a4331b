"""Sliding-window upload rate limiting.

The in-memory limiter keeps per-user history in the current process only.
Deployments running several instances should provide a ``RateLimiter`` backed
by a shared counter store instead.
"""

from __future__ import annotations

import threading
import time
from bisect import bisect_left
from typing import Callable, Protocol

from .models import RateWindow

MINUTE = 60.0
HOUR = 3600.0


class RateLimiter(Protocol):
    def allow(self, user_id: str, window: RateWindow) -> tuple[bool, float]:
        """Return ``(allowed, seconds_to_wait)`` and record the attempt when allowed."""
        ...


class InMemoryRateLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._events: dict[str, list[float]] = {}

    def allow(self, user_id: str, window: RateWindow) -> tuple[bool, float]:
        if not window.enabled:
            return True, 0.0

        now = self._clock()
        max_window = HOUR if window.per_hour > 0 else MINUTE

        with self._lock:
            history = self._events.get(user_id, [])
            history = history[bisect_left(history, now - max_window):]

            for limit, span in ((window.per_minute, MINUTE), (window.per_hour, HOUR)):
                if limit <= 0:
                    continue
                start = bisect_left(history, now - span)
                if len(history) - start >= limit:
                    self._events[user_id] = history
                    return False, span - (now - history[start])

            history.append(now)
            self._events[user_id] = history
            return True, 0.0

    def reset(self, user_id: str | None = None) -> None:
        with self._lock:
            if user_id is None:
                self._events.clear()
            else:
                self._events.pop(user_id, None)
