"""
Token-bucket rate limiter shared by all calls of one provider client.

The refill-and-consume step runs under a lock; waiting happens outside it, so
a sleeping caller never blocks others from taking a freshly refilled token.
Waiters are not queued: after a wait, whichever caller reaches the lock first
gets the token, so completion order may differ from call order under
contention.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from ..core.errors import RateLimitTimeout

logger = logging.getLogger(__name__)


class RateLimiter:
    """Allow bursts up to `capacity`, then `refill_per_second` sustained."""

    def __init__(
        self,
        capacity: float,
        refill_per_second: float,
        *,
        name: str = "provider",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if refill_per_second <= 0:
            raise ValueError(f"refill_per_second must be > 0, got {refill_per_second}")
        self.name = name
        self.capacity = float(capacity)
        self.refill_per_second = float(refill_per_second)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._tokens = float(capacity)
        self._last_refill = clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_per_second)
        self._last_refill = now

    @property
    def tokens(self) -> float:
        with self._lock:
            self._refill()
            return self._tokens

    def try_acquire(self) -> bool:
        """Consume a token if one is available right now."""
        with self._lock:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def acquire(self, timeout: Optional[float] = None) -> float:
        """
        Block until a token is consumed. Returns total seconds spent waiting.

        Raises RateLimitTimeout (without consuming) if the wait needed would
        exceed `timeout`.
        """
        waited = 0.0
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return waited
                wait = (1.0 - self._tokens) / self.refill_per_second
            if timeout is not None and waited + wait > timeout:
                raise RateLimitTimeout(self.name, wait, timeout - waited)
            logger.debug("Rate limiter %s waiting %.3fs for a token", self.name, wait)
            self._sleep(wait)
            waited += wait
