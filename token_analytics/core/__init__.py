"""
Stable facade: error taxonomy and seeding only. No providers, service, or cli.
Do not add exports without updating __all__.
"""

from __future__ import annotations

from .errors import (
    ConfigurationError,
    ProviderExhausted,
    RateLimitTimeout,
    TokenAnalyticsError,
    TransportError,
    ValidationError,
)
from .seeding import rng_for, seed_for

__all__ = [
    "ConfigurationError",
    "ProviderExhausted",
    "RateLimitTimeout",
    "TokenAnalyticsError",
    "TransportError",
    "ValidationError",
    "rng_for",
    "seed_for",
]
