"""
Request pacing for feed servers and the LLM endpoint.

Two limiters share the ``acquire()`` contract. ``FixedDelayLimiter`` sleeps a
fixed delay before every call except the first, which is how feed batches and
analysis calls have always been paced. ``TokenBucketLimiter`` allows a
configurable rate with bursts.
"""

import logging
import threading
import time
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    """Blocks the caller until the next unit of work may start."""

    def acquire(self) -> None:
        """Waits for permission to proceed."""

    def reset(self) -> None:
        """Forgets previous acquisitions."""


class FixedDelayLimiter:
    """Sleeps ``delay`` seconds between consecutive acquisitions."""

    def __init__(self, delay: float, sleep: Callable[[float], None] = time.sleep):
        self.delay = delay
        self._sleep = sleep
        self._started = False
        self._lock = threading.Lock()

    def acquire(self) -> None:
        with self._lock:
            if self._started and self.delay > 0:
                self._sleep(self.delay)
            self._started = True

    def reset(self) -> None:
        """Makes the next acquisition free again."""
        with self._lock:
            self._started = False


class TokenBucketLimiter:
    """Token bucket: ``rate`` tokens per second, holding at most ``capacity``."""

    def __init__(
        self,
        rate: float,
        capacity: float = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._last = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last
        self._last = now
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)

    def acquire(self) -> None:
        with self._lock:
            self._refill()
            if self._tokens < 1:
                wait = (1 - self._tokens) / self.rate
                logger.debug("Rate limit reached, waiting %.2fs", wait)
                self._sleep(wait)
                self._refill()
            self._tokens = max(0.0, self._tokens - 1)

    def reset(self) -> None:
        with self._lock:
            self._tokens = self.capacity
            self._last = self._clock()


def build_limiter(
    mode: str, delay: float, sleep: Callable[[float], None] = time.sleep
) -> RateLimiter:
    """Returns a limiter that allows one call every ``delay`` seconds."""
    if mode == "token_bucket" and delay > 0:
        return TokenBucketLimiter(rate=1.0 / delay, capacity=1, sleep=sleep)
    if mode not in ("fixed", "token_bucket"):
        logger.warning("Unknown rate limit mode '%s'. Using fixed delay.", mode)
    return FixedDelayLimiter(delay, sleep=sleep)
