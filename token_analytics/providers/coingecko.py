"""
CoinGecko client: batch-friendly price source keyed by CoinGecko coin id.

Free tier: https://api.coingecko.com/api/v3 (about 30 requests a minute).
With an API key the pro host and its higher limits are used, and the key is
sent as the x-cg-pro-api-key header.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .base import PriceData, PricePoint, ProviderId
from .cache import TTLCache
from .http import HTTP_TIMEOUT_S, ProviderClient
from .ratelimit import RateLimiter
from .resilience import Deadline, RetryPolicy
from .validation import (
    assert_valid,
    validate_coingecko_batch_prices,
    validate_coingecko_market_chart,
    validate_coingecko_simple_price,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://api.coingecko.com/api/v3"
PRO_URL = "https://pro-api.coingecko.com/api/v3"

# Free / pro token buckets: (capacity, refill per second)
FREE_LIMIT = (30, 0.5)
PRO_LIMIT = (500, 8.3)


class CoinGeckoClient(ProviderClient):
    """Simple price, batch price and market chart lookups."""

    provider_id = ProviderId.COINGECKO

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        limiter: Optional[RateLimiter] = None,
        cache: Optional[TTLCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        http_timeout_s: float = HTTP_TIMEOUT_S,
    ) -> None:
        self.is_pro = bool(api_key)
        capacity, refill = PRO_LIMIT if self.is_pro else FREE_LIMIT
        super().__init__(
            base_url=PRO_URL if self.is_pro else BASE_URL,
            limiter=limiter or RateLimiter(capacity, refill, name="coingecko"),
            cache=cache or TTLCache(name="coingecko"),
            retry_policy=retry_policy,
            headers={"x-cg-pro-api-key": api_key} if api_key else None,
            http_timeout_s=http_timeout_s,
        )

    def get_price(self, coin_id: str, *, deadline: Optional[Deadline] = None) -> PriceData:
        params = {
            "ids": coin_id,
            "vs_currencies": "usd",
            "include_24hr_vol": "true",
            "include_market_cap": "true",
            "include_24hr_change": "true",
        }
        data = self.get_json("/simple/price", params, deadline=deadline)
        return assert_valid(validate_coingecko_simple_price(data, coin_id), "CoinGeckoSimplePrice")

    def get_batch_prices(self, coin_ids: Iterable[str], *, deadline: Optional[Deadline] = None) -> Dict[str, PriceData]:
        """Prices keyed by coin id; ids CoinGecko does not return are left out."""
        ids = list(dict.fromkeys(coin_ids))
        if not ids:
            return {}
        params = {
            "ids": ",".join(ids),
            "vs_currencies": "usd",
            "include_24hr_vol": "true",
            "include_market_cap": "true",
            "include_24hr_change": "true",
        }
        data = self.get_json("/simple/price", params, deadline=deadline)
        prices = assert_valid(validate_coingecko_batch_prices(data), "CoinGeckoBatchPrices")
        return {cid: prices[cid] for cid in ids if cid in prices}

    def get_price_history(self, coin_id: str, days: int = 90, *, deadline: Optional[Deadline] = None) -> List[PricePoint]:
        params = {"vs_currency": "usd", "days": str(days)}
        if days > 1:
            params["interval"] = "daily"
        data = self.get_json(f"/coins/{coin_id}/market_chart", params, deadline=deadline)
        return assert_valid(validate_coingecko_market_chart(data), "CoinGeckoMarketChart")
