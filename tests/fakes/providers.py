"""
Fake provider clients for tests: deterministic data, fail-N-then-succeed,
always-fail, hang-until-released, and invalid-payload sources.

No live network. Each fake carries its own TTLCache like the real clients.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from token_analytics.core.errors import TransportError
from token_analytics.providers.base import (
    HolderBalance,
    HoldersPage,
    PriceData,
    PricePoint,
    ProtocolTvl,
    ProviderId,
)
from token_analytics.providers.cache import TTLCache
from token_analytics.providers.validation import assert_valid, validate_codex_holders


class FakeClock:
    """Manual monotonic clock; sleep() advances it and records the request."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_holders(balances: Iterable[float], count: Optional[int] = None) -> HoldersPage:
    balances = list(balances)
    total = sum(balances)
    holders = tuple(
        HolderBalance(address=f"wallet{i}", balance=b, percent_of_supply=(b / total) * 100 if total else 0.0)
        for i, b in enumerate(balances)
    )
    return HoldersPage(count=count if count is not None else len(holders), holders=holders)


# ---------------------------------------------------------------------------
# Always succeed with deterministic data
# ---------------------------------------------------------------------------


class FakeSource:
    """Answers every query with fixed data. Tracks calls per method."""

    def __init__(
        self,
        provider_id: ProviderId,
        *,
        price: float = 1.5,
        holders: Optional[HoldersPage] = None,
        history: Optional[List[PricePoint]] = None,
        tvl: float = 1_000_000.0,
        missing: Iterable[str] = (),
    ):
        self.provider_id = provider_id
        self.cache = TTLCache(name=f"fake-{provider_id.value}")
        self._price = price
        self._holders = holders or make_holders([50.0, 30.0, 20.0], count=10)
        self._history = history if history is not None else [
            PricePoint(timestamp_ms=1_700_000_000_000 + i * 86_400_000, price=price + i) for i in range(3)
        ]
        self._tvl = tvl
        self._missing = set(missing)
        self.calls: Dict[str, int] = {}
        self.batch_keys: List[List[str]] = []

    @property
    def call_count(self) -> int:
        return sum(self.calls.values())

    def _hit(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    def _price_for(self, key: str) -> Optional[PriceData]:
        if key in self._missing:
            return None
        return PriceData(price=self._price, change_24h=1.0, volume_24h=10.0, market_cap=100.0)

    def get_price(self, key: str, *, deadline=None) -> PriceData:
        self._hit("get_price")
        price = self._price_for(key)
        if price is None:
            raise TransportError(self.provider_id.value, f"{key} not found", status=404)
        return price

    def get_token_price(self, key: str, *, deadline=None) -> Optional[PriceData]:
        self._hit("get_token_price")
        return self._price_for(key)

    def get_latest_price(self, key: str, *, deadline=None) -> Optional[PriceData]:
        self._hit("get_latest_price")
        return self._price_for(key)

    def get_batch_prices(self, keys: Iterable[str], *, deadline=None) -> Dict[str, PriceData]:
        self._hit("get_batch_prices")
        keys = list(keys)
        self.batch_keys.append(keys)
        out = {}
        for key in keys:
            price = self._price_for(key)
            if price is not None:
                out[key] = price
        return out

    def get_price_history(self, key: str, days: int = 90, *, deadline=None) -> List[PricePoint]:
        self._hit("get_price_history")
        return list(self._history)

    def get_holders(self, key: str, limit: int = 100, cursor: Optional[str] = None, *, deadline=None) -> HoldersPage:
        self._hit("get_holders")
        return HoldersPage(count=self._holders.count, holders=self._holders.holders[:limit])

    def get_protocol_tvl(self, key: str, *, deadline=None) -> ProtocolTvl:
        self._hit("get_protocol_tvl")
        return ProtocolTvl(name=key, tvl=self._tvl, chain_tvls={"Solana": self._tvl})


# ---------------------------------------------------------------------------
# Failure modes
# ---------------------------------------------------------------------------


class FakeSourceAlwaysFail(FakeSource):
    """Every query raises the given error (TransportError 503 by default)."""

    def __init__(self, provider_id: ProviderId, error: Optional[Exception] = None):
        super().__init__(provider_id)
        self._error = error or TransportError(provider_id.value, "simulated outage", status=503)

    def _price_for(self, key: str) -> Optional[PriceData]:
        raise self._error

    def get_price_history(self, key: str, days: int = 90, *, deadline=None) -> List[PricePoint]:
        self._hit("get_price_history")
        raise self._error

    def get_holders(self, key: str, limit: int = 100, cursor: Optional[str] = None, *, deadline=None) -> HoldersPage:
        self._hit("get_holders")
        raise self._error

    def get_protocol_tvl(self, key: str, *, deadline=None) -> ProtocolTvl:
        self._hit("get_protocol_tvl")
        raise self._error


class FakeSourceFailNThenSucceed(FakeSource):
    """Holder queries fail the first N calls, then succeed."""

    def __init__(self, provider_id: ProviderId, fail_times: int, **kwargs):
        super().__init__(provider_id, **kwargs)
        self._fail_times = fail_times

    def get_holders(self, key: str, limit: int = 100, cursor: Optional[str] = None, *, deadline=None) -> HoldersPage:
        self._hit("get_holders")
        if self.calls["get_holders"] <= self._fail_times:
            raise TransportError(self.provider_id.value, f"simulated failure #{self.calls['get_holders']}", status=502)
        return super().get_holders(key, limit, cursor)


class FakeSourceHangs(FakeSource):
    """Holder and price queries block until release() (or 5s), then fail."""

    def __init__(self, provider_id: ProviderId):
        super().__init__(provider_id)
        self._released = threading.Event()

    def release(self) -> None:
        self._released.set()

    def _block(self) -> None:
        self._released.wait(5.0)
        raise TransportError(self.provider_id.value, "released after hang")

    def get_holders(self, key: str, limit: int = 100, cursor: Optional[str] = None, *, deadline=None) -> HoldersPage:
        self._hit("get_holders")
        self._block()
        raise AssertionError("unreachable")

    def get_price(self, key: str, *, deadline=None) -> PriceData:
        self._hit("get_price")
        self._block()
        raise AssertionError("unreachable")


class FakeSourceInvalidPayload(FakeSource):
    """Holder queries return a malformed Codex payload and fail validation."""

    PAYLOAD = {"holders": {"items": [{"address": 42, "balance": "lots"}], "count": "many"}}

    def get_holders(self, key: str, limit: int = 100, cursor: Optional[str] = None, *, deadline=None) -> HoldersPage:
        self._hit("get_holders")
        return assert_valid(validate_codex_holders(self.PAYLOAD), "CodexHolders")
