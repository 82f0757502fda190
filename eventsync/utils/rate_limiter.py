# ==============================================================================
# Fixed Window Rate Limiter
# ==============================================================================
"""
Non-blocking rate limiter for outbound geolocation lookups.

Counts permits handed out in the current window.  Once more than
``window_seconds`` have elapsed since the window opened, the count resets.
Unlike a token bucket, ``try_acquire()`` never sleeps: callers that are
denied fall back to whatever they already have.

The state lives in this object only; it is per-process and is lost on
restart.

Usage::

    limiter = WindowRateLimiter(limit=5, window_seconds=60)
    if limiter.try_acquire():
        data = client.lookup(ip)
"""

import time
from collections.abc import Callable


class WindowRateLimiter:
    """Rate limiter allowing ``limit`` permits per fixed window.

    Args:
        limit: Permits per window.
        window_seconds: Window length in seconds.
        clock: Callable returning the current time in seconds.
            Defaults to ``time.monotonic``.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")

        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic

        self.requests_in_window = 0
        self.window_start: float = self._clock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def try_acquire(self) -> bool:
        """Consume one permit if the current window has one left.

        Returns:
            True if the caller may proceed, False if the window is exhausted.
        """
        self._maybe_reset()
        if self.requests_in_window >= self.limit:
            return False
        self.requests_in_window += 1
        return True

    @property
    def remaining(self) -> int:
        """Permits left in the current window."""
        self._maybe_reset()
        return max(0, self.limit - self.requests_in_window)

    @property
    def window_time_left(self) -> float:
        """Seconds until the current window resets."""
        elapsed = self._clock() - self.window_start
        return max(0.0, self.window_seconds - elapsed)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _maybe_reset(self) -> None:
        now = self._clock()
        if now - self.window_start > self.window_seconds:
            self.requests_in_window = 0
            self.window_start = now
