"""
Provider clients for token market and holder data.

Each external service gets its own client with a private rate limiter, cache
and retry policy. Clients raise typed errors (TransportError, ValidationError,
RateLimitTimeout); falling back between them is the data service's job.
"""

from __future__ import annotations

from .base import (
    Bar,
    DistributionMetrics,
    HolderBalance,
    HolderBuckets,
    HoldersPage,
    PriceData,
    PricePoint,
    ProtocolTvl,
    ProviderId,
    ProviderResult,
    TokenInfo,
    TokenMetrics,
    TokenSummary,
    WalletCategory,
)
from .cache import MISS, CacheJanitor, CacheStats, TTLCache
from .codex import CodexClient
from .coingecko import CoinGeckoClient
from .defillama import DefiLlamaClient
from .http import ProviderClient
from .ratelimit import RateLimiter
from .registry import ProviderRegistry
from .resilience import Deadline, RetryPolicy, is_http_retryable, with_retry

__all__ = [
    "Bar",
    "CacheJanitor",
    "CacheStats",
    "CodexClient",
    "CoinGeckoClient",
    "Deadline",
    "DefiLlamaClient",
    "DistributionMetrics",
    "HolderBalance",
    "HolderBuckets",
    "HoldersPage",
    "MISS",
    "PriceData",
    "PricePoint",
    "ProtocolTvl",
    "ProviderClient",
    "ProviderId",
    "ProviderRegistry",
    "ProviderResult",
    "RateLimiter",
    "RetryPolicy",
    "TTLCache",
    "TokenInfo",
    "TokenMetrics",
    "TokenSummary",
    "WalletCategory",
    "is_http_retryable",
    "with_retry",
]
