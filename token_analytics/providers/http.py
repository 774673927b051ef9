"""
Common plumbing for HTTP provider clients.

A ProviderClient owns one RateLimiter, one TTLCache and one RetryPolicy. Every
outbound request takes a limiter token, runs inside with_retry, and turns
transport problems into TransportError so the retry predicate and the
fallback chain can reason about them. Response bodies come back as untyped
JSON; the concrete client validates them.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

import requests

from ..core.errors import TransportError, ValidationError
from .base import ProviderId
from .cache import TTLCache
from .ratelimit import RateLimiter
from .resilience import Deadline, RetryPolicy, with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

HTTP_TIMEOUT_S = 15.0


def parse_json_response(provider: str, resp: requests.Response) -> Any:
    """Non-2xx -> TransportError(status); undecodable body -> ValidationError."""
    if not 200 <= resp.status_code < 300:
        body = (resp.text or "")[:200]
        raise TransportError(provider, body or resp.reason or "request failed", status=resp.status_code)
    try:
        return resp.json()
    except ValueError as exc:
        raise ValidationError([f"response body is not JSON: {exc}"], provider) from exc


class ProviderClient:
    """Base for the concrete provider clients. Not used directly."""

    provider_id: ProviderId

    def __init__(
        self,
        *,
        base_url: str,
        limiter: RateLimiter,
        cache: TTLCache,
        retry_policy: Optional[RetryPolicy] = None,
        headers: Optional[Mapping[str, str]] = None,
        http_timeout_s: float = HTTP_TIMEOUT_S,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.limiter = limiter
        self.cache = cache
        self.retry_policy = retry_policy or RetryPolicy()
        self.headers: Dict[str, str] = {"Accept": "application/json", **dict(headers or {})}
        self.http_timeout_s = http_timeout_s

    @property
    def provider_name(self) -> str:
        return self.provider_id.value

    def _request_timeout(self, deadline: Optional[Deadline]) -> float:
        if deadline is None:
            return self.http_timeout_s
        remaining = deadline.bound(self.http_timeout_s)
        if remaining <= 0:
            raise TransportError(self.provider_name, "deadline exceeded before request")
        return remaining

    def _call(self, attempt: Callable[[], T], deadline: Optional[Deadline] = None) -> T:
        """Rate limit and retry one logical request. Each attempt takes its own token."""

        def limited() -> T:
            self.limiter.acquire(timeout=deadline.remaining() if deadline is not None else None)
            return attempt()

        def log_retry(exc: BaseException, n: int, delay: float) -> None:
            logger.debug("%s retry %d after %.2fs: %s", self.provider_name, n, delay, exc)

        return with_retry(limited, self.retry_policy, deadline=deadline, on_retry=log_retry)

    def get_json(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        base_url: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ) -> Any:
        url = f"{(base_url or self.base_url).rstrip('/')}/{path.lstrip('/')}"

        def attempt() -> Any:
            try:
                resp = requests.get(
                    url, params=params, headers=self.headers, timeout=self._request_timeout(deadline)
                )
            except requests.RequestException as exc:
                raise TransportError(self.provider_name, f"GET {url} failed: {exc}") from exc
            return parse_json_response(self.provider_name, resp)

        return self._call(attempt, deadline)

    def post_json(
        self,
        path: str,
        payload: Mapping[str, Any],
        *,
        deadline: Optional[Deadline] = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url

        def attempt() -> Any:
            try:
                resp = requests.post(
                    url,
                    json=dict(payload),
                    headers={"Content-Type": "application/json", **self.headers},
                    timeout=self._request_timeout(deadline),
                )
            except requests.RequestException as exc:
                raise TransportError(self.provider_name, f"POST {url} failed: {exc}") from exc
            return parse_json_response(self.provider_name, resp)

        return self._call(attempt, deadline)

    def close(self) -> None:
        """Drop cached entries. Clients hold no sockets of their own."""
        self.cache.clear()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r})"
