"""
Token data service: ordered provider fallback with caching and synthetic last resort.

Each logical request walks a fixed state sequence:

    cache -> provider[0] -> ... -> provider[n-1] -> mock -> done
                                                \\-> ProviderExhausted (mocks disabled)

Success short-circuits. Provider calls run on a worker pool so every call is
bounded by a deadline; a call that misses it is abandoned and the chain
advances. Attempts within one request are strictly sequential. The service
holds no mutable state of its own beyond the worker pool, so one instance can
be shared across threads.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from .core.errors import ConfigurationError, ProviderExhausted, TransportError
from .metrics.distribution import DEFAULT_NAKAMOTO_THRESHOLD, compute_distribution_metrics, holder_buckets
from .providers.base import (
    HoldersPage,
    PriceData,
    PricePoint,
    ProtocolTvl,
    ProviderId,
    ProviderResult,
    TokenMetrics,
    TokenSummary,
)
from .providers.cache import MISS, CacheJanitor, CacheStats, TTLCache
from .providers.resilience import Deadline
from .synthetic import SyntheticDataGenerator
from .tokens import TOKEN_REGISTRY, Token, get_token, provider_key

logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyResolver = Callable[[str, ProviderId, str], Optional[str]]
ChainLink = Tuple[ProviderId, Any, str]

# Provider method that answers a single-token price query
_PRICE_METHODS = {
    ProviderId.COINGECKO: "get_price",
    ProviderId.DEFILLAMA: "get_token_price",
    ProviderId.CODEX: "get_latest_price",
}

DEFAULT_TTL_S = 60.0
SUMMARIES_KEY = "summaries"


def registry_key_resolver(token_id: str, provider: ProviderId, kind: str) -> Optional[str]:
    """Identifier from the token registry; unknown tokens have none."""
    return provider_key(get_token(token_id), provider, kind)


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenDataService:
    """
    Typed data access over an ordered set of provider clients.

    clients: provider id -> client (CodexClient, DefiLlamaClient, CoinGeckoClient
    or anything with the same methods and a `cache`).
    priorities: data kind -> provider ids to try, in order.
    ttls: data kind -> {source or "default": seconds}.
    """

    def __init__(
        self,
        clients: Mapping[ProviderId, Any],
        generator: SyntheticDataGenerator,
        *,
        priorities: Mapping[str, Sequence[ProviderId]],
        allow_mocks: bool = True,
        ttls: Optional[Mapping[str, Mapping[str, float]]] = None,
        call_timeout_s: float = 10.0,
        holder_sample_size: int = 200,
        nakamoto_threshold: float = DEFAULT_NAKAMOTO_THRESHOLD,
        key_resolver: KeyResolver = registry_key_resolver,
        janitor: Optional[CacheJanitor] = None,
        max_workers: int = 8,
        tokens: Sequence[Token] = TOKEN_REGISTRY,
        summary_cache: Optional[TTLCache] = None,
    ) -> None:
        if call_timeout_s <= 0:
            raise ConfigurationError(f"call_timeout_s must be > 0, got {call_timeout_s}")
        self._clients = dict(clients)
        self._generator = generator
        self._priorities = {kind: tuple(ids) for kind, ids in priorities.items()}
        self._allow_mocks = bool(allow_mocks)
        self._ttls = {kind: dict(by_source) for kind, by_source in (ttls or {}).items()}
        self._call_timeout_s = call_timeout_s
        self._holder_sample_size = holder_sample_size
        self._nakamoto_threshold = nakamoto_threshold
        self._key_resolver = key_resolver
        self._janitor = janitor
        self._tokens = tuple(tokens)
        self._summary_cache = summary_cache or TTLCache(max_size=4, name="summaries")
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="provider-call")

    @property
    def allow_mocks(self) -> bool:
        return self._allow_mocks

    # -- plumbing ----------------------------------------------------------

    def _ttl(self, kind: str, source: ProviderId) -> float:
        by_source = self._ttls.get(kind, {})
        return float(by_source.get(source.value, by_source.get("default", DEFAULT_TTL_S)))

    def _chain(self, kind: str, token_id: str) -> List[ChainLink]:
        """Providers configured for `kind` that can serve this token, in priority order."""
        links: List[ChainLink] = []
        for pid in self._priorities.get(kind, ()):
            client = self._clients.get(pid)
            if client is None:
                continue
            key = self._key_resolver(token_id, pid, kind)
            if key:
                links.append((pid, client, key))
        return links

    def _cached(self, chain: Sequence[ChainLink], cache_key: str) -> Optional[ProviderResult]:
        for pid, client, _ in chain:
            value = client.cache.get(cache_key)
            if value is not MISS:
                return ProviderResult(data=value, source=pid, cached=True)
        if self._allow_mocks:
            value = self._generator.cache.get(cache_key)
            if value is not MISS:
                return ProviderResult(data=value, source=ProviderId.MOCK, cached=True)
        return None

    def _call_with_deadline(self, pid: ProviderId, fn: Callable[[Deadline], T]) -> T:
        deadline = Deadline.after(self._call_timeout_s)
        future = self._pool.submit(fn, deadline)
        try:
            return future.result(timeout=self._call_timeout_s)
        except FuturesTimeout as exc:
            future.cancel()
            raise TransportError(pid.value, f"no result within {self._call_timeout_s:.2f}s") from exc

    def _resolve(
        self,
        kind: str,
        operation: str,
        token_id: str,
        cache_key: str,
        call: Callable[[ProviderId, Any, str, Deadline], Optional[T]],
        mock: Callable[[], T],
        is_empty: Callable[[T], bool] = lambda data: not data,
    ) -> ProviderResult[T]:
        chain = self._chain(kind, token_id)
        hit = self._cached(chain, cache_key)
        if hit is not None:
            logger.debug("%s(%s): cache hit from %s", operation, token_id, hit.source.value)
            return hit

        attempts: List[str] = []
        last_error: Optional[BaseException] = None
        for pid, client, key in chain:
            try:
                data = self._call_with_deadline(
                    pid, lambda dl, pid=pid, client=client, key=key: call(pid, client, key, dl)
                )
            except ConfigurationError:
                raise
            except Exception as exc:
                last_error = exc
                attempts.append(f"{pid.value}: {type(exc).__name__}: {exc}")
                logger.warning("%s(%s): %s failed, trying next source: %s", operation, token_id, pid.value, exc)
                continue
            if data is None or is_empty(data):
                attempts.append(f"{pid.value}: empty result")
                logger.warning("%s(%s): %s returned no data, trying next source", operation, token_id, pid.value)
                continue
            client.cache.set(cache_key, data, self._ttl(kind, pid))
            return ProviderResult(data=data, source=pid)

        return self._fallback(kind, operation, token_id, cache_key, mock, attempts, last_error)

    def _fallback(
        self,
        kind: str,
        operation: str,
        token_id: str,
        cache_key: str,
        mock: Callable[[], T],
        attempts: Sequence[str],
        last_error: Optional[BaseException],
    ) -> ProviderResult[T]:
        if not self._allow_mocks:
            logger.error("%s(%s): all providers failed and synthetic data is disabled", operation, token_id)
            raise ProviderExhausted(operation, token_id, attempts, last_error) from last_error
        logger.warning(
            "%s(%s): serving synthetic data after %d failed source(s)", operation, token_id, len(attempts)
        )
        data = mock()
        self._generator.cache.set(cache_key, data, self._ttl(kind, ProviderId.MOCK))
        return ProviderResult(data=data, source=ProviderId.MOCK)

    # -- operations --------------------------------------------------------

    def get_token_price(self, token_id: str) -> ProviderResult[PriceData]:
        def call(pid: ProviderId, client: Any, key: str, deadline: Deadline) -> Optional[PriceData]:
            price = getattr(client, _PRICE_METHODS[pid])(key, deadline=deadline)
            if price is not None and not price.is_valid():
                raise ValueError(f"invalid price {price.price}")
            return price

        return self._resolve(
            "price", "get_token_price", token_id, f"price:{token_id}",
            call, lambda: self._generator.current_price(token_id), is_empty=lambda p: False,
        )

    def get_price_history(self, token_id: str, days: int = 90) -> ProviderResult[List[PricePoint]]:
        def call(pid: ProviderId, client: Any, key: str, deadline: Deadline) -> List[PricePoint]:
            return client.get_price_history(key, days, deadline=deadline)

        return self._resolve(
            "price_history", "get_price_history", token_id, f"price_history:{token_id}:{days}",
            call, lambda: self._generator.price_history(token_id, days),
        )

    def get_token_holders(
        self, token_id: str, limit: int = 100, cursor: Optional[str] = None
    ) -> ProviderResult[HoldersPage]:
        def call(pid: ProviderId, client: Any, key: str, deadline: Deadline) -> HoldersPage:
            return client.get_holders(key, limit, cursor, deadline=deadline)

        return self._resolve(
            "holders", "get_token_holders", token_id, f"holders:{token_id}:{limit}:{cursor or ''}",
            call, lambda: self._generator.holders(token_id, limit, cursor),
            is_empty=lambda page: not page.holders,
        )

    def get_token_metrics(self, token_id: str) -> ProviderResult[TokenMetrics]:
        """Distribution metrics over the largest holders (holder_sample_size of them)."""

        def call(pid: ProviderId, client: Any, key: str, deadline: Deadline) -> Optional[TokenMetrics]:
            page = client.get_holders(key, self._holder_sample_size, None, deadline=deadline)
            if not page.holders:
                return None
            holder_count = page.count
            if hasattr(client, "get_token_info"):
                holder_count = client.get_token_info(key, deadline=deadline).holder_count
            return TokenMetrics(
                token_id=token_id,
                metrics=compute_distribution_metrics(page.balances(), self._nakamoto_threshold),
                holder_count=holder_count,
                holder_buckets=holder_buckets(page.holders, holder_count),
                timestamp_ms=_now_ms(),
            )

        return self._resolve(
            "metrics", "get_token_metrics", token_id, f"metrics:{token_id}",
            call, lambda: self._generator.metrics(token_id, self._nakamoto_threshold), is_empty=lambda m: False,
        )

    def get_token_tvl(self, token_id: str) -> ProviderResult[ProtocolTvl]:
        def call(pid: ProviderId, client: Any, key: str, deadline: Deadline) -> ProtocolTvl:
            return client.get_protocol_tvl(key, deadline=deadline)

        return self._resolve(
            "tvl", "get_token_tvl", token_id, f"tvl:{token_id}",
            call, lambda: self._generator.protocol_tvl(token_id), is_empty=lambda t: False,
        )

    def get_batch_prices(self, token_ids: Iterable[str]) -> Dict[str, ProviderResult[PriceData]]:
        """
        Prices for many tokens with one request per provider.

        Cached prices are reused, each provider is asked only for what is still
        missing, and leftovers get synthetic prices when allowed. With mocks
        disabled unresolved tokens are left out; ProviderExhausted is raised only
        if nothing resolved.
        """
        ids = list(dict.fromkeys(token_ids))
        results: Dict[str, ProviderResult[PriceData]] = {}
        for token_id in ids:
            hit = self._cached(self._chain("batch_prices", token_id), f"price:{token_id}")
            if hit is not None:
                results[token_id] = hit

        attempts: List[str] = []
        last_error: Optional[BaseException] = None
        for pid in self._priorities.get("batch_prices", ()):
            client = self._clients.get(pid)
            if client is None:
                continue
            # several ids (symbol and mint) can share one provider key
            pending: Dict[str, List[str]] = {}
            for token_id in ids:
                if token_id in results:
                    continue
                key = self._key_resolver(token_id, pid, "batch_prices")
                if key:
                    pending.setdefault(key, []).append(token_id)
            if not pending:
                continue
            try:
                prices = self._call_with_deadline(
                    pid, lambda dl, client=client, keys=list(pending): client.get_batch_prices(keys, deadline=dl)
                )
            except ConfigurationError:
                raise
            except Exception as exc:
                last_error = exc
                attempts.append(f"{pid.value}: {type(exc).__name__}: {exc}")
                logger.warning("get_batch_prices: %s failed for %d token(s): %s", pid.value, len(pending), exc)
                continue
            for key, key_ids in pending.items():
                price = prices.get(key)
                if price is None or not price.is_valid():
                    continue
                for token_id in key_ids:
                    client.cache.set(f"price:{token_id}", price, self._ttl("price", pid))
                    results[token_id] = ProviderResult(data=price, source=pid)

        missing = [t for t in ids if t not in results]
        if missing:
            if self._allow_mocks:
                logger.warning("get_batch_prices: serving synthetic prices for %s", ", ".join(missing))
                for token_id in missing:
                    price = self._generator.current_price(token_id)
                    self._generator.cache.set(f"price:{token_id}", price, self._ttl("price", ProviderId.MOCK))
                    results[token_id] = ProviderResult(data=price, source=ProviderId.MOCK)
            elif not results:
                raise ProviderExhausted("get_batch_prices", ",".join(ids), attempts, last_error) from last_error
            else:
                logger.warning("get_batch_prices: no real price for %s; omitted", ", ".join(missing))
        return {t: results[t] for t in ids if t in results}

    def get_all_token_summaries(self) -> List[TokenSummary]:
        """
        One summary per registry token: batch prices joined with per-token
        metrics and synthetic trading activity (buy pressure as a percentage).

        Buy pressure has no real source, so with mocks disabled this returns an
        empty list rather than mixing synthetic figures into real ones.
        """
        cached = self._summary_cache.get(SUMMARIES_KEY)
        if cached is not MISS:
            return cached
        if not self._allow_mocks:
            return []

        prices = self.get_batch_prices([t.id for t in self._tokens])
        summaries: List[TokenSummary] = []
        for token in self._tokens:
            price = prices.get(token.id)
            metrics = self.get_token_metrics(token.id).data
            trading = self._generator.trading_metrics(token.id)
            summaries.append(
                TokenSummary(
                    token_id=token.id,
                    name=token.name,
                    symbol=token.symbol,
                    price=price.data.price if price else 0.0,
                    change_24h=(price.data.change_24h or 0.0) if price else 0.0,
                    market_cap=(price.data.market_cap or 0.0) if price else 0.0,
                    holders=metrics.holder_count,
                    gini=metrics.metrics.gini,
                    nakamoto=metrics.metrics.nakamoto_coefficient,
                    buy_pressure=trading.buy_pressure * 100,
                    source=price.source if price else ProviderId.MOCK,
                )
            )
        ttl = self._ttls.get("price", {}).get("default", DEFAULT_TTL_S)
        self._summary_cache.set(SUMMARIES_KEY, summaries, float(ttl))
        return summaries

    # -- introspection / lifecycle ------------------------------------------

    def cache_stats(self) -> Dict[str, CacheStats]:
        stats = {pid.value: client.cache.stats() for pid, client in self._clients.items()}
        stats[ProviderId.MOCK.value] = self._generator.cache.stats()
        return stats

    def close(self) -> None:
        if self._janitor is not None:
            self._janitor.stop()
        self._summary_cache.clear()
        self._pool.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> TokenDataService:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
