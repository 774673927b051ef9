"""
Shared exception types for token_analytics.

Transport and validation failures are per-provider and are absorbed by the
fallback chain; only ProviderExhausted and ConfigurationError are expected to
reach callers of the data service.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence


class TokenAnalyticsError(Exception):
    """Base exception for token_analytics; catch this for any package-raised error."""

    pass


class TransportError(TokenAnalyticsError):
    """Network failure or non-2xx response from an external provider."""

    def __init__(self, provider: str, message: str, status: Optional[int] = None) -> None:
        self.provider = provider
        self.status = status
        prefix = f"{provider} HTTP {status}" if status is not None else provider
        super().__init__(f"{prefix}: {message}")

    @property
    def retryable(self) -> bool:
        # No status means the request never completed (connection reset, timeout).
        if self.status is None:
            return True
        return self.status >= 500 or self.status == 429


class ValidationError(TokenAnalyticsError):
    """Provider response did not match the expected shape."""

    def __init__(self, errors: Iterable[str], source: str) -> None:
        self.errors: tuple[str, ...] = tuple(errors)
        self.source = source
        super().__init__(f"Validation failed for {source}: {'; '.join(self.errors)}")


class RateLimitTimeout(TokenAnalyticsError):
    """Waiting for a rate-limit token would exceed the caller's deadline."""

    def __init__(self, provider: str, wait_s: float, timeout_s: float) -> None:
        self.provider = provider
        self.wait_s = wait_s
        self.timeout_s = timeout_s
        super().__init__(
            f"{provider}: rate limiter needs {wait_s:.3f}s, only {max(timeout_s, 0.0):.3f}s left"
        )


class ProviderExhausted(TokenAnalyticsError):
    """Every configured provider failed and synthetic fallback is disabled."""

    code = "MOCKS_DISABLED"

    def __init__(
        self,
        operation: str,
        token_id: str,
        attempts: Sequence[str] = (),
        last_error: Optional[BaseException] = None,
    ) -> None:
        self.operation = operation
        self.token_id = token_id
        self.attempts = tuple(attempts)
        self.last_error = last_error
        detail = "; ".join(self.attempts) if self.attempts else "no applicable providers"
        super().__init__(f"{self.code}: {operation}({token_id}) exhausted providers: {detail}")


class ConfigurationError(TokenAnalyticsError):
    """Required configuration (usually a credential) is missing or invalid."""

    pass


__all__ = [
    "ConfigurationError",
    "ProviderExhausted",
    "RateLimitTimeout",
    "TokenAnalyticsError",
    "TransportError",
    "ValidationError",
]
