"""
Default wiring: build provider clients and the data service from config.

Register built-in providers here; priorities, rate limits, retry policy and
cache TTLs come from config.py (defaults <- config.yaml <- env).
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .. import config as cfg_mod
from ..core.errors import ConfigurationError
from .base import ProviderId
from .cache import CacheJanitor, TTLCache
from .codex import CodexClient
from .coingecko import CoinGeckoClient
from .defillama import DefiLlamaClient
from .ratelimit import RateLimiter
from .registry import ProviderRegistry
from .resilience import RetryPolicy

if TYPE_CHECKING:
    from ..service import TokenDataService

logger = logging.getLogger(__name__)

DATA_KINDS = ("price", "price_history", "holders", "metrics", "batch_prices", "tvl")


def build_retry_policy(cfg: dict) -> RetryPolicy:
    r = cfg_mod.retry_settings(cfg)
    return RetryPolicy(
        max_attempts=int(r["max_attempts"]),
        initial_delay_s=float(r["initial_delay_s"]),
        max_delay_s=float(r["max_delay_s"]),
        backoff_multiplier=float(r["backoff_multiplier"]),
        jitter=bool(r["jitter"]),
    )


def build_limiter(name: str, cfg: dict) -> RateLimiter:
    limit = cfg_mod.rate_limit(name, cfg)
    return RateLimiter(limit["capacity"], limit["refill_per_second"], name=name)


def build_cache(name: str, cfg: dict) -> TTLCache:
    return TTLCache(max_size=cfg_mod.cache_max_size(cfg), name=name)


def create_default_registry(cfg: Optional[dict] = None) -> ProviderRegistry:
    """Create a registry with all built-in providers, configured from `cfg`."""
    cfg = cfg or cfg_mod.get_config()
    policy = build_retry_policy(cfg)
    http_timeout = cfg_mod.http_timeout_s(cfg)
    token_info_ttl = cfg_mod.cache_ttls(cfg).get("token_info", {}).get("default", 3600.0)

    def codex() -> CodexClient:
        return CodexClient(
            cfg_mod.codex_api_key(),
            limiter=build_limiter("codex", cfg),
            cache=build_cache("codex", cfg),
            retry_policy=policy,
            http_timeout_s=http_timeout,
            token_info_ttl_s=token_info_ttl,
        )

    def defillama() -> DefiLlamaClient:
        return DefiLlamaClient(
            limiter=build_limiter("defillama", cfg),
            cache=build_cache("defillama", cfg),
            retry_policy=policy,
            http_timeout_s=http_timeout,
        )

    def coingecko() -> CoinGeckoClient:
        key = cfg_mod.coingecko_api_key()
        limiter = build_limiter("coingecko_pro" if key else "coingecko", cfg)
        return CoinGeckoClient(
            key,
            limiter=limiter,
            cache=build_cache("coingecko", cfg),
            retry_policy=policy,
            http_timeout_s=http_timeout,
        )

    registry = ProviderRegistry()
    registry.register(ProviderId.CODEX, codex)
    registry.register(ProviderId.DEFILLAMA, defillama)
    registry.register(ProviderId.COINGECKO, coingecko)
    return registry


def load_priorities(cfg: dict) -> Dict[str, List[ProviderId]]:
    """Priority lists by data kind. Unknown provider names are a configuration error."""
    out: Dict[str, List[ProviderId]] = {}
    for kind in DATA_KINDS:
        ids: List[ProviderId] = []
        for name in cfg_mod.provider_priority(kind, cfg):
            try:
                pid = ProviderId(str(name).lower())
            except ValueError as exc:
                raise ConfigurationError(f"unknown provider '{name}' in providers.priority.{kind}") from exc
            if pid == ProviderId.MOCK:
                raise ConfigurationError("'mock' is not a provider; use allow_mocks instead")
            ids.append(pid)
        out[kind] = ids
    return out


def create_token_data_service(
    cfg: Optional[dict] = None,
    *,
    registry: Optional[ProviderRegistry] = None,
    start_janitor: bool = True,
) -> TokenDataService:
    """
    Build a TokenDataService from config.

    Providers whose construction fails for lack of configuration (e.g. no
    CODEX_API_KEY) are left out with a warning. If that leaves a data kind
    with no provider at all while synthetic data is disabled, the service
    could never answer it, so ConfigurationError is raised.
    """
    from ..service import TokenDataService
    from ..synthetic import SyntheticDataGenerator

    cfg = cfg or cfg_mod.get_config()
    reg = registry or create_default_registry(cfg)
    allow = cfg_mod.allow_mocks(cfg)
    priorities = load_priorities(cfg)

    clients: Dict[ProviderId, Any] = {}
    for pid in dict.fromkeys(p for ids in priorities.values() for p in ids):
        try:
            clients[pid] = reg.get(pid)
        except ConfigurationError as exc:
            logger.warning("Provider %s disabled: %s", pid.value, exc)
        except KeyError:
            logger.warning("Provider %s is in a priority list but not registered", pid.value)

    if not allow:
        for kind, ids in priorities.items():
            if not any(p in clients for p in ids):
                raise ConfigurationError(
                    f"no usable provider for '{kind}' and allow_mocks is off "
                    f"(configured: {[p.value for p in ids]})"
                )

    generator = SyntheticDataGenerator(TTLCache(max_size=cfg_mod.cache_max_size(cfg), name="mock"))
    summary_cache = TTLCache(max_size=4, name="summaries")
    janitor = CacheJanitor(
        [c.cache for c in clients.values()] + [generator.cache, summary_cache],
        interval_s=cfg_mod.cache_cleanup_interval_s(cfg),
    )
    if start_janitor:
        janitor.start()

    return TokenDataService(
        clients,
        generator,
        priorities=priorities,
        allow_mocks=allow,
        ttls=cfg_mod.cache_ttls(cfg),
        call_timeout_s=cfg_mod.call_timeout_s(cfg),
        holder_sample_size=cfg_mod.holder_sample_size(cfg),
        nakamoto_threshold=cfg_mod.nakamoto_threshold(cfg),
        janitor=janitor,
        summary_cache=summary_cache,
    )
