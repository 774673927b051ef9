"""
DeFiLlama client: secondary price source and protocol TVL.

Uses the public DeFiLlama APIs (no authentication required):
  GET https://coins.llama.fi/prices/current/{chain}:{mint}[,...]
  GET https://coins.llama.fi/chart/{chain}:{mint}?start=&span=
  GET https://api.llama.fi/protocol/{slug}
"""
from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, List, Optional

from .base import PriceData, PricePoint, ProtocolTvl, ProviderId
from .cache import TTLCache
from .http import HTTP_TIMEOUT_S, ProviderClient
from .ratelimit import RateLimiter
from .resilience import Deadline, RetryPolicy
from .validation import assert_valid, validate_defillama_chart, validate_defillama_prices, validate_defillama_protocol

logger = logging.getLogger(__name__)

COINS_API = "https://coins.llama.fi"
LLAMA_API = "https://api.llama.fi"
DEFAULT_CHAIN = "solana"


class DefiLlamaClient(ProviderClient):
    """Current and historical prices keyed by mint address, and protocol TVL by slug."""

    provider_id = ProviderId.DEFILLAMA

    def __init__(
        self,
        *,
        limiter: Optional[RateLimiter] = None,
        cache: Optional[TTLCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        chain: str = DEFAULT_CHAIN,
        http_timeout_s: float = HTTP_TIMEOUT_S,
        coins_url: str = COINS_API,
        llama_url: str = LLAMA_API,
    ) -> None:
        super().__init__(
            base_url=coins_url,
            limiter=limiter or RateLimiter(60, 1.0, name="defillama"),
            cache=cache or TTLCache(name="defillama"),
            retry_policy=retry_policy,
            http_timeout_s=http_timeout_s,
        )
        self.chain = chain
        self.llama_url = llama_url.rstrip("/")

    def coin_key(self, mint: str) -> str:
        return f"{self.chain}:{mint}"

    def get_token_price(self, mint: str, *, deadline: Optional[Deadline] = None) -> Optional[PriceData]:
        """Price only; DeFiLlama reports no 24h change, volume or market cap. None if unknown."""
        prices = self.get_batch_prices([mint], deadline=deadline)
        return prices.get(mint)

    def get_batch_prices(self, mints: Iterable[str], *, deadline: Optional[Deadline] = None) -> Dict[str, PriceData]:
        """Prices keyed by mint. Mints DeFiLlama does not know are left out."""
        mints = list(dict.fromkeys(mints))
        if not mints:
            return {}
        keys = [self.coin_key(m) for m in mints]
        data = self.get_json(f"/prices/current/{','.join(keys)}", deadline=deadline)
        by_key = assert_valid(validate_defillama_prices(data, keys), "DefiLlamaPrices")
        return {mint: by_key[key] for mint, key in zip(mints, keys) if key in by_key}

    def get_price_history(
        self,
        mint: str,
        days: int = 90,
        *,
        deadline: Optional[Deadline] = None,
    ) -> List[PricePoint]:
        """Daily points for the last `days` days, oldest first."""
        key = self.coin_key(mint)
        start = int(time.time()) - days * 86400
        data = self.get_json(f"/chart/{key}", {"start": start, "span": days, "period": "1d"}, deadline=deadline)
        points = assert_valid(validate_defillama_chart(data, key), "DefiLlamaChart")
        return sorted(points, key=lambda p: p.timestamp_ms)

    def get_protocol_tvl(self, slug: str, *, deadline: Optional[Deadline] = None) -> ProtocolTvl:
        data = self.get_json(f"/protocol/{slug}", base_url=self.llama_url, deadline=deadline)
        return assert_valid(validate_defillama_protocol(data), "DefiLlamaProtocol")
