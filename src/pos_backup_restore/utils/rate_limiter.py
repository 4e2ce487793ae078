"""
Request pacing for Firestore calls.

Export, import and reset issue their store calls strictly one after another.
This sliding-window limiter spaces those calls so a large wipe or restore does
not hammer the backend, while still letting short bursts through.
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""
    requests_per_second: float = 10.0
    burst_size: int = 20  # Calls allowed back to back before spacing kicks in
    window_size: int = 10  # Sliding window in seconds


class RateLimiter:
    """
    Sliding window rate limiter.

    Tracks call timestamps inside the window. Once the window holds
    ``burst_size`` calls, each new call is spaced at least
    ``1 / requests_per_second`` after the previous one, and the average over
    the window is kept under the configured rate.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._sleep = sleep
        self._requests: deque = deque()
        self._total_wait = 0.0

    def wait_if_needed(self) -> float:
        """
        Block until the next call is allowed, then record it.

        Returns:
            Time waited in seconds
        """
        now = self._clock()
        self._clean_old_requests(now)

        wait_time = self._calculate_wait_time(now)
        if wait_time > 0:
            self._sleep(wait_time)
            self._total_wait += wait_time

        self._requests.append(self._clock())
        return wait_time

    def _clean_old_requests(self, now: float) -> None:
        cutoff = now - self.config.window_size
        while self._requests and self._requests[0] < cutoff:
            self._requests.popleft()

    def _calculate_wait_time(self, now: float) -> float:
        if len(self._requests) < self.config.burst_size:
            return 0.0

        min_interval = 1.0 / self.config.requests_per_second
        spacing_wait = max(0.0, min_interval - (now - self._requests[-1]))

        # Average over the window: the window may hold at most rate * size calls
        max_in_window = max(1, int(self.config.requests_per_second * self.config.window_size))
        window_wait = 0.0
        if len(self._requests) >= max_in_window:
            oldest = self._requests[-max_in_window]
            window_wait = max(0.0, oldest + self.config.window_size - now)

        return max(spacing_wait, window_wait)

    def get_current_rate(self) -> float:
        """Calls per second over the current window."""
        now = self._clock()
        self._clean_old_requests(now)

        if len(self._requests) < 2:
            return 0.0

        span = min(self.config.window_size, now - self._requests[0])
        return len(self._requests) / span if span > 0 else 0.0

    def get_stats(self) -> dict:
        """
        Get rate limiter statistics.

        Returns:
            Dictionary with current statistics
        """
        return {
            "current_rate": self.get_current_rate(),
            "requests_in_window": len(self._requests),
            "configured_rate": self.config.requests_per_second,
            "burst_size": self.config.burst_size,
            "window_size": self.config.window_size,
            "total_wait": self._total_wait,
        }

    def reset(self) -> None:
        """Reset rate limiter state."""
        self._requests.clear()
        self._total_wait = 0.0
