"""
Codex GraphQL client: primary source for holders, token info and OHLCV bars.

  POST https://graph.codex.io/graphql   (header Authorization: <api key>)

Tokens are addressed as "<address>:<networkId>"; Solana is 1399811149.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from ..core.errors import ConfigurationError, TransportError
from .base import Bar, HoldersPage, PriceData, PricePoint, ProviderId, TokenInfo
from .cache import TTLCache
from .http import HTTP_TIMEOUT_S, ProviderClient
from .ratelimit import RateLimiter
from .resilience import Deadline, RetryPolicy
from .validation import assert_valid, validate_codex_bars, validate_codex_holders, validate_codex_token_info

logger = logging.getLogger(__name__)

CODEX_URL = "https://graph.codex.io/graphql"
SOLANA_NETWORK_ID = 1399811149
TOKEN_INFO_TTL_S = 3600.0

TOKEN_QUERY = """
query TokenInfo($address: String!, $networkId: Int!) {
  token(input: { address: $address, networkId: $networkId }) {
    address
    name
    symbol
    totalSupply
    holderCount
  }
}
"""

HOLDERS_QUERY = """
query Holders($input: HoldersInput!) {
  holders(input: $input) {
    count
    cursor
    items {
      address
      balance
      percentOwned
    }
  }
}
"""

BARS_QUERY = """
query Bars($symbol: String!, $from: Int!, $to: Int!, $resolution: String!) {
  getBars(symbol: $symbol, from: $from, to: $to, resolution: $resolution, currencyCode: "USD", symbolType: TOKEN) {
    t
    o
    h
    l
    c
    volume
    s
  }
}
"""


def _graphql_error(errors: Any) -> TransportError:
    messages = [e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors]
    text = "; ".join(messages) or "unknown GraphQL error"
    # Codex reports throttling inside a 200 response; keep it retryable.
    status = 429 if "rate limit" in text.lower() else 400
    return TransportError(ProviderId.CODEX.value, f"GraphQL: {text}", status=status)


def _lacks_percent(data: Mapping[str, Any]) -> bool:
    """True if any holder item arrived without percentOwned."""
    block = data.get("holders")
    items = block.get("items") if isinstance(block, dict) else None
    if not isinstance(items, list):
        return False
    return any(isinstance(item, dict) and item.get("percentOwned") is None for item in items)


class CodexClient(ProviderClient):
    """Typed queries over the Codex GraphQL API. An API key is required."""

    provider_id = ProviderId.CODEX

    def __init__(
        self,
        api_key: Optional[str],
        *,
        limiter: Optional[RateLimiter] = None,
        cache: Optional[TTLCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        network_id: int = SOLANA_NETWORK_ID,
        http_timeout_s: float = HTTP_TIMEOUT_S,
        token_info_ttl_s: float = TOKEN_INFO_TTL_S,
        base_url: str = CODEX_URL,
    ) -> None:
        if not api_key:
            raise ConfigurationError("CODEX_API_KEY is required for the Codex provider")
        super().__init__(
            base_url=base_url,
            limiter=limiter or RateLimiter(30, 0.5, name="codex"),
            cache=cache or TTLCache(name="codex"),
            retry_policy=retry_policy,
            headers={"Authorization": api_key},
            http_timeout_s=http_timeout_s,
        )
        self.network_id = network_id
        self.token_info_ttl_s = token_info_ttl_s

    def _query(self, query: str, variables: Mapping[str, Any], deadline: Optional[Deadline]) -> Dict[str, Any]:
        body = self.post_json("", {"query": query, "variables": dict(variables)}, deadline=deadline)
        if isinstance(body, dict) and body.get("errors"):
            raise _graphql_error(body["errors"])
        data = body.get("data") if isinstance(body, dict) else None
        return data if isinstance(data, dict) else {}

    def token_id(self, address: str) -> str:
        return f"{address}:{self.network_id}"

    def get_token_info(self, address: str, *, deadline: Optional[Deadline] = None) -> TokenInfo:
        """Name, symbol, supply and holder count. Cached for an hour; metadata changes slowly."""

        def fetch() -> TokenInfo:
            data = self._query(TOKEN_QUERY, {"address": address, "networkId": self.network_id}, deadline)
            return assert_valid(validate_codex_token_info(data), "CodexTokenInfo")

        return self.cache.get_or_set(f"token_info:{address}", fetch, self.token_info_ttl_s)

    def get_holders(
        self,
        address: str,
        limit: int = 100,
        cursor: Optional[str] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> HoldersPage:
        """One page of holders, largest first. `count` is Codex's total holder count."""
        holder_input: Dict[str, Any] = {"tokenId": self.token_id(address), "limit": limit}
        if cursor:
            holder_input["cursor"] = cursor
        data = self._query(HOLDERS_QUERY, {"input": holder_input}, deadline)
        total_supply = None
        if _lacks_percent(data):
            total_supply = self.get_token_info(address, deadline=deadline).total_supply
        page = assert_valid(validate_codex_holders(data, total_supply), "CodexHolders")
        ordered = tuple(sorted(page.holders, key=lambda h: h.balance, reverse=True))
        return HoldersPage(count=page.count, holders=ordered, cursor=page.cursor)

    def get_bars(
        self,
        address: str,
        resolution: str = "1D",
        from_ts: Optional[int] = None,
        to_ts: Optional[int] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> List[Bar]:
        """OHLCV candles between unix-second bounds (default: last 30 days)."""
        to_ts = int(to_ts if to_ts is not None else time.time())
        from_ts = int(from_ts if from_ts is not None else to_ts - 30 * 86400)
        variables = {"symbol": self.token_id(address), "from": from_ts, "to": to_ts, "resolution": resolution}
        data = self._query(BARS_QUERY, variables, deadline)
        return assert_valid(validate_codex_bars(data), "CodexBars")

    def get_latest_price(self, address: str, *, deadline: Optional[Deadline] = None) -> Optional[PriceData]:
        """Last hourly close, with 24h change and volume from the same bars. None if no trades."""
        to_ts = int(time.time())
        bars = self.get_bars(address, "60", to_ts - 86400, to_ts, deadline=deadline)
        if not bars:
            return None
        first, last = bars[0], bars[-1]
        change = ((last.close - first.open) / first.open) * 100 if first.open > 0 else None
        volumes = [b.volume for b in bars if b.volume is not None]
        return PriceData(price=last.close, change_24h=change, volume_24h=sum(volumes) if volumes else None)

    def get_price_history(self, address: str, days: int = 90, *, deadline: Optional[Deadline] = None) -> List[PricePoint]:
        """Daily closes as price points."""
        to_ts = int(time.time())
        bars = self.get_bars(address, "1D", to_ts - days * 86400, to_ts, deadline=deadline)
        return [PricePoint(timestamp_ms=b.timestamp * 1000, price=b.close, volume=b.volume) for b in bars]
