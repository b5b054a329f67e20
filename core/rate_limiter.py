"""
Per-Source Rate Limiter

Minimum-interval throttle for a single upstream source. Each source gets
its own limiter instance; the clock and sleep primitive are injected so
the limiter can be driven by a fake clock in tests.
"""

import time
from typing import Callable, Optional

from core.logging import get_logger


Clock = Callable[[], float]
Sleeper = Callable[[float], None]


class RateLimiter:
    """
    Enforces a minimum interval between consecutive requests to one source.

    Usage:
        limiter = RateLimiter("leaguepedia", min_interval=8.0)
        limiter.acquire()   # blocks until the interval has elapsed
        session.get(url)
    """

    def __init__(
        self,
        name: str,
        min_interval: float = 0.0,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.name = name
        self.min_interval = min_interval
        self.clock = clock
        self.sleep = sleep
        self._last_request: Optional[float] = None
        self.log = get_logger("rate_limiter").bind(source=name)

    @property
    def last_request(self) -> Optional[float]:
        """Clock value of the last dispatched request, or None."""
        return self._last_request

    def acquire(self) -> float:
        """
        Wait until the next request may be dispatched, then stamp it.

        Returns:
            Seconds spent waiting (0.0 if no wait was needed)
        """
        waited = 0.0
        if self._last_request is not None:
            wait = self.min_interval - (self.clock() - self._last_request)
            if wait > 0:
                self.log.debug("throttle_wait", wait_seconds=round(wait, 3))
                self.sleep(wait)
                waited = wait
        self._last_request = self.clock()
        return waited

    def cooldown(self, seconds: float) -> None:
        """Suspend for an explicit rate-limit cooldown and restart the interval."""
        self.log.warning("rate_limit_cooldown", cooldown_seconds=seconds)
        self.sleep(seconds)
        self._last_request = self.clock()

    def reset(self) -> None:
        self._last_request = None

    def __repr__(self) -> str:
        return f"<RateLimiter(source={self.name}, min_interval={self.min_interval})>"
