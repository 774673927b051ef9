"""
Resilience primitives: retry with exponential backoff and jitter, and call deadlines.

These wrap provider calls to ride out transient failures (5xx, 429, dropped
connections) while letting permanent ones (4xx, malformed payloads) fail fast
so the fallback chain can move on.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from ..core.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_http_retryable(exc: BaseException) -> bool:
    """5xx, 429 and network-level failures are retryable; everything else is not."""
    if isinstance(exc, TransportError):
        return exc.retryable
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry with exponential backoff. Immutable per call."""

    max_attempts: int = 3
    initial_delay_s: float = 0.5
    max_delay_s: float = 10.0
    backoff_multiplier: float = 2.0
    jitter: bool = True
    is_retryable: Callable[[BaseException], bool] = is_http_retryable

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.backoff_multiplier < 1:
            raise ValueError(f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}")

    def delay_for(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Backoff before retrying after 0-based `attempt`."""
        delay = min(self.max_delay_s, self.initial_delay_s * (self.backoff_multiplier ** attempt))
        if self.jitter:
            delay += rand() * delay * 0.5
        return delay


class Deadline:
    """Absolute point on the monotonic clock after which a call is abandoned."""

    def __init__(self, expires_at: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._expires_at = expires_at
        self._clock = clock

    @classmethod
    def after(cls, seconds: float, clock: Callable[[], float] = time.monotonic) -> Deadline:
        return cls(clock() + seconds, clock=clock)

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def bound(self, seconds: float) -> float:
        """Clamp a timeout so it never outlives this deadline."""
        return min(seconds, self.remaining())


def with_retry(
    operation: Callable[[], T],
    policy: Optional[RetryPolicy] = None,
    *,
    deadline: Optional[Deadline] = None,
    on_retry: Optional[Callable[[BaseException, int, float], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run `operation` up to policy.max_attempts times.

    The last error is raised unchanged when attempts run out, when the error
    is not retryable, or when the deadline would expire before the next try.
    """
    cfg = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            return operation()
        except Exception as exc:
            is_last = attempt >= cfg.max_attempts - 1
            if is_last or not cfg.is_retryable(exc):
                raise
            delay = cfg.delay_for(attempt)
            if deadline is not None and (deadline.expired or delay >= deadline.remaining()):
                logger.debug("Deadline reached after attempt %d; giving up: %s", attempt + 1, exc)
                raise
            logger.debug(
                "Attempt %d/%d failed (%s: %s); retrying in %.2fs",
                attempt + 1, cfg.max_attempts, type(exc).__name__, exc, delay,
            )
            if on_retry is not None:
                on_retry(exc, attempt + 1, delay)
            sleep(delay)
            attempt += 1
