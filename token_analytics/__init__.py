"""
Top-level public API surface. Stable facades only.
Canonical entrypoint: import token_analytics; build a service with
token_analytics.create_token_data_service(). Does not import cli.
"""

from __future__ import annotations

from . import core, metrics, providers
from ._version import __version__
from .providers.base import ProviderId, ProviderResult
from .providers.defaults import create_token_data_service
from .service import TokenDataService
from .synthetic import SyntheticDataGenerator

# Do not add exports without updating __all__.
__all__ = [
    "ProviderId",
    "ProviderResult",
    "SyntheticDataGenerator",
    "TokenDataService",
    "__version__",
    "core",
    "create_token_data_service",
    "metrics",
    "providers",
]
