"""
Provider identities and data contracts.

Every value crossing the provider boundary is a frozen dataclass built by a
validator; nothing untyped leaves a client. Results handed to callers are
wrapped in ProviderResult so provenance travels with the data.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class ProviderId(str, enum.Enum):
    """Closed set of data sources. MOCK marks synthetic, non-authoritative data."""

    CODEX = "codex"
    DEFILLAMA = "defillama"
    COINGECKO = "coingecko"
    MOCK = "mock"


class WalletCategory(str, enum.Enum):
    WHALE = "whale"
    SHARK = "shark"
    DOLPHIN = "dolphin"
    FISH = "fish"


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """Data plus provenance. Consumers must not treat source=MOCK as real."""

    data: T
    source: ProviderId
    cached: bool = False

    @property
    def is_synthetic(self) -> bool:
        return self.source == ProviderId.MOCK


@dataclass(frozen=True)
class PriceData:
    """Current price; fields a provider does not report stay None."""

    price: float
    change_24h: Optional[float] = None
    volume_24h: Optional[float] = None
    market_cap: Optional[float] = None

    def is_valid(self) -> bool:
        return self.price > 0


@dataclass(frozen=True)
class PricePoint:
    timestamp_ms: int
    price: float
    volume: Optional[float] = None
    market_cap: Optional[float] = None


@dataclass(frozen=True)
class Bar:
    """One OHLCV candle; timestamp is unix seconds."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None


@dataclass(frozen=True)
class HolderBalance:
    address: str
    balance: float
    percent_of_supply: float
    category: Optional[WalletCategory] = None


@dataclass(frozen=True)
class HoldersPage:
    """One page of holders. count is the provider's total holder count, not len(holders)."""

    count: int
    holders: Tuple[HolderBalance, ...]
    cursor: Optional[str] = None

    def balances(self) -> list[float]:
        return [h.balance for h in self.holders]


@dataclass(frozen=True)
class TokenInfo:
    address: str
    name: Optional[str]
    symbol: Optional[str]
    total_supply: Optional[float]
    holder_count: int


@dataclass(frozen=True)
class ProtocolTvl:
    name: str
    tvl: float
    chain_tvls: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class HolderBuckets:
    whale: int = 0
    shark: int = 0
    dolphin: int = 0
    fish: int = 0

    @property
    def total(self) -> int:
        return self.whale + self.shark + self.dolphin + self.fish


@dataclass(frozen=True)
class DistributionMetrics:
    gini: float
    hhi: float
    nakamoto_coefficient: int
    palma_ratio: float
    shannon_entropy: float
    normalized_entropy: float
    top1_percent: float
    top10_percent: float
    median_holding: float


@dataclass(frozen=True)
class TokenMetrics:
    token_id: str
    metrics: DistributionMetrics
    holder_count: int
    holder_buckets: HolderBuckets
    timestamp_ms: int


@dataclass(frozen=True)
class TokenSummary:
    """One registry token joined across price, distribution and trading data."""

    token_id: str
    name: str
    symbol: str
    price: float
    change_24h: float
    market_cap: float
    holders: int
    gini: float
    nakamoto: int
    buy_pressure: float
    source: ProviderId
