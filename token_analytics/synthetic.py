"""
Deterministic synthetic market and holder data, the last-resort fallback.

Every series is drawn from a numpy Generator seeded by (token_id, purpose), so
the same token and purpose always produce the same numbers in any process.
Shape parameters come from the token's distribution profile. Records built
here are always served with source=mock.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np

from .core.seeding import (
    PURPOSE_ADDRESSES,
    PURPOSE_BUCKETS,
    PURPOSE_HOLDER_TS,
    PURPOSE_HOLDERS,
    PURPOSE_METRICS,
    PURPOSE_OHLCV,
    PURPOSE_PRICE,
    PURPOSE_TRADING,
    PURPOSE_TVL,
    rng_for,
)
from .metrics.distribution import categorize_holder, compute_distribution_metrics, lorenz_curve
from .providers.base import (
    Bar,
    HolderBalance,
    HolderBuckets,
    HoldersPage,
    PriceData,
    PricePoint,
    ProtocolTvl,
    TokenMetrics,
)
from .providers.cache import TTLCache
from .tokens import (
    CATEGORY_COMMUNITY,
    CATEGORY_FUTARCHY_DAO,
    CATEGORY_METADAO,
    CATEGORY_METADAO_ICO,
    get_token,
)

logger = logging.getLogger(__name__)

DAY_MS = 86_400_000
# Price paths are drawn over a fixed horizon and sliced, so any `days` window
# agrees with every other window and with the current price.
PRICE_HORIZON_DAYS = 365
HOLDER_POPULATION = 200
_BASE58 = np.array(list("123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"))


class ProfileKind(str, enum.Enum):
    EGALITARIAN = "egalitarian"
    COMMUNITY = "community"
    CONCENTRATED = "concentrated"


@dataclass(frozen=True)
class DistributionProfile:
    kind: ProfileKind
    pareto_alpha: float
    gini_base: float
    gini_span: float
    gini_trend: float
    gini_trend_jitter: float
    monthly_growth_base: float
    monthly_growth_span: float
    ts_holders_base: float
    ts_holders_span: float
    holder_count_base: int
    whale_ratio: float
    shark_ratio: float
    dolphin_ratio: float
    price_volatility: float
    # daily candles
    ohlcv_volume_base: float
    ohlcv_volume_span: float
    volume_volatility: float
    intraday_base: float
    intraday_span: float
    volume_spike_chance: float
    # 24h trading activity
    buy_pressure_base: float
    buy_pressure_span: float
    trade_volume_base: float
    trade_volume_span: float
    txn_base: float
    txn_span: float
    liquidity_base: float
    liquidity_span: float


PROFILES = {
    ProfileKind.EGALITARIAN: DistributionProfile(
        kind=ProfileKind.EGALITARIAN,
        pareto_alpha=1.8,
        gini_base=0.65, gini_span=0.10, gini_trend=-0.0005, gini_trend_jitter=0.0,
        monthly_growth_base=0.03, monthly_growth_span=0.05,
        ts_holders_base=800, ts_holders_span=400,
        holder_count_base=2500,
        whale_ratio=0.002, shark_ratio=0.010, dolphin_ratio=0.04,
        price_volatility=0.04,
        ohlcv_volume_base=50_000, ohlcv_volume_span=100_000, volume_volatility=0.3,
        intraday_base=0.02, intraday_span=0.03, volume_spike_chance=0.0,
        buy_pressure_base=0.52, buy_pressure_span=0.06,
        trade_volume_base=0.5, trade_volume_span=0.3,
        txn_base=500, txn_span=500, liquidity_base=3, liquidity_span=2,
    ),
    ProfileKind.COMMUNITY: DistributionProfile(
        kind=ProfileKind.COMMUNITY,
        pareto_alpha=1.5,
        gini_base=0.70, gini_span=0.10, gini_trend=0.0, gini_trend_jitter=0.001,
        monthly_growth_base=0.10, monthly_growth_span=0.10,
        ts_holders_base=2000, ts_holders_span=1000,
        holder_count_base=50000,
        whale_ratio=0.001, shark_ratio=0.008, dolphin_ratio=0.03,
        price_volatility=0.06,
        ohlcv_volume_base=200_000, ohlcv_volume_span=500_000, volume_volatility=0.8,
        intraday_base=0.05, intraday_span=0.10, volume_spike_chance=0.05,
        buy_pressure_base=0.35, buy_pressure_span=0.30,
        trade_volume_base=0.8, trade_volume_span=1.5,
        txn_base=2000, txn_span=5000, liquidity_base=1, liquidity_span=2,
    ),
    ProfileKind.CONCENTRATED: DistributionProfile(
        kind=ProfileKind.CONCENTRATED,
        pareto_alpha=2.5,
        gini_base=0.85, gini_span=0.08, gini_trend=0.0002, gini_trend_jitter=0.0,
        monthly_growth_base=0.01, monthly_growth_span=0.02,
        ts_holders_base=3000, ts_holders_span=2000,
        holder_count_base=8000,
        whale_ratio=0.004, shark_ratio=0.015, dolphin_ratio=0.05,
        price_volatility=0.04,
        ohlcv_volume_base=500_000, ohlcv_volume_span=1_000_000, volume_volatility=0.5,
        intraday_base=0.03, intraday_span=0.05, volume_spike_chance=0.0,
        buy_pressure_base=0.45, buy_pressure_span=0.05,
        trade_volume_base=1.0, trade_volume_span=0.5,
        txn_base=1000, txn_span=2000, liquidity_base=5, liquidity_span=3,
    ),
}

_CATEGORY_PROFILE = {
    CATEGORY_METADAO: ProfileKind.EGALITARIAN,
    CATEGORY_METADAO_ICO: ProfileKind.EGALITARIAN,
    CATEGORY_FUTARCHY_DAO: ProfileKind.EGALITARIAN,
    CATEGORY_COMMUNITY: ProfileKind.COMMUNITY,
}


def profile_for(token_id: str) -> DistributionProfile:
    """Profile by token category; vc-backed and unknown tokens are CONCENTRATED."""
    token = get_token(token_id)
    kind = _CATEGORY_PROFILE.get(token.category, ProfileKind.CONCENTRATED) if token else ProfileKind.CONCENTRATED
    return PROFILES[kind]


@dataclass(frozen=True)
class HolderTimeSeriesPoint:
    timestamp_ms: int
    total_holders: int
    gini: float
    top10_pct: float
    whale_count: int
    shark_count: int
    dolphin_count: int
    fish_count: int


@dataclass(frozen=True)
class TradingMetrics:
    volume_24h: float
    buy_volume_24h: float
    sell_volume_24h: float
    txn_count_24h: int
    liquidity: float
    buy_pressure: float


class SyntheticDataGenerator:
    """
    Seeded generator of price, holder, metric and TVL data.

    `clock` only anchors timestamps (to the start of the current UTC day);
    values never depend on it.
    """

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        *,
        population: int = HOLDER_POPULATION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache = cache or TTLCache(name="mock")
        self.population = population
        self._clock = clock

    def _anchor_ms(self) -> int:
        now_ms = int(self._clock() * 1000)
        return now_ms - now_ms % DAY_MS

    # -- prices ------------------------------------------------------------

    def _price_path(self, token_id: str) -> np.ndarray:
        """Returns (PRICE_HORIZON_DAYS + 1, 3): price, volume, market cap."""
        rng = rng_for(token_id, PURPOSE_PRICE)
        profile = profile_for(token_id)
        base = rng.random() * 20 + 0.5
        steps = PRICE_HORIZON_DAYS + 1
        u = rng.random((steps, 3))
        out = np.empty((steps, 3))
        price = base
        for i in range(steps):
            change = (u[i, 0] - 0.48) * profile.price_volatility
            price = max(price * (1 + change), base * 0.05)
            out[i] = (price, price * (u[i, 1] * 5_000_000 + 100_000), price * (u[i, 2] * 500_000_000 + 10_000_000))
        return out

    def price_history(self, token_id: str, days: int = 90) -> List[PricePoint]:
        """Daily points, oldest first, ending today. `days` is capped at one year."""
        days = max(1, min(days, PRICE_HORIZON_DAYS))
        path = self._price_path(token_id)[-(days + 1):]
        anchor = self._anchor_ms()
        return [
            PricePoint(
                timestamp_ms=anchor - (days - i) * DAY_MS,
                price=float(p),
                volume=float(v),
                market_cap=float(m),
            )
            for i, (p, v, m) in enumerate(path)
        ]

    def current_price(self, token_id: str) -> PriceData:
        prev, cur = self._price_path(token_id)[-2:]
        return PriceData(
            price=float(cur[0]),
            change_24h=float((cur[0] - prev[0]) / prev[0] * 100),
            volume_24h=float(cur[1]),
            market_cap=float(cur[2]),
        )

    def ohlcv(self, token_id: str, days: int = 90) -> List[Bar]:
        """
        Daily candles whose close is the synthetic price history. Volume grows with
        the size of the day's move; community tokens see occasional 3-10x spikes.
        """
        profile = profile_for(token_id)
        rng = rng_for(token_id, PURPOSE_OHLCV)
        base_volume = profile.ohlcv_volume_base + rng.random() * profile.ohlcv_volume_span
        bars: List[Bar] = []
        prev_close: Optional[float] = None
        for point in self.price_history(token_id, days):
            u = rng.random(7)
            close = point.price
            intraday = profile.intraday_base + u[0] * profile.intraday_span
            open_ = close * (1 + (u[1] - 0.5) * intraday)
            high = max(open_, close) * (1 + u[2] * intraday)
            low = min(open_, close) * (1 - u[3] * intraday)
            move = abs(close - prev_close) / close if prev_close is not None else 0.0
            volume = base_volume * (1 + move * 10 * (0.5 + u[4])) * close
            volume *= 1 + (u[5] - 0.5) * profile.volume_volatility
            if u[6] < profile.volume_spike_chance:
                volume *= 3 + rng.random() * 7
            bars.append(
                Bar(
                    timestamp=point.timestamp_ms // 1000,
                    open=float(open_),
                    high=float(high),
                    low=float(low),
                    close=float(close),
                    volume=float(round(volume)),
                )
            )
            prev_close = close
        return bars

    def trading_metrics(self, token_id: str) -> TradingMetrics:
        """24h buy/sell split, transaction count and liquidity, scaled off `current_price` volume."""
        profile = profile_for(token_id)
        u = rng_for(token_id, PURPOSE_TRADING).random(4)
        buy_pressure = profile.buy_pressure_base + u[0] * profile.buy_pressure_span
        volume = (self.current_price(token_id).volume_24h or 0.0) * (
            profile.trade_volume_base + u[1] * profile.trade_volume_span
        )
        return TradingMetrics(
            volume_24h=float(volume),
            buy_volume_24h=float(volume * buy_pressure),
            sell_volume_24h=float(volume * (1 - buy_pressure)),
            txn_count_24h=int(round(profile.txn_base + u[2] * profile.txn_span)),
            liquidity=float(volume * (profile.liquidity_base + u[3] * profile.liquidity_span)),
            buy_pressure=float(buy_pressure),
        )

    # -- holders -----------------------------------------------------------

    def holder_balances(self, token_id: str, count: Optional[int] = None) -> np.ndarray:
        """Pareto-tailed balances, largest first."""
        count = self.population if count is None else count
        rng = rng_for(token_id, PURPOSE_HOLDERS)
        alpha = profile_for(token_id).pareto_alpha
        u = rng.random(count)
        balances = (np.power(1.0 - u, -1.0 / alpha) - 1.0) * 10_000
        return np.sort(balances)[::-1]

    def _addresses(self, token_id: str, count: int) -> List[str]:
        rng = rng_for(token_id, PURPOSE_ADDRESSES)
        idx = rng.integers(0, len(_BASE58), size=(count, 44))
        return ["".join(row) for row in _BASE58[idx]]

    def holder_count(self, token_id: str) -> int:
        rng = rng_for(token_id, PURPOSE_METRICS)
        base = profile_for(token_id).holder_count_base
        return max(self.population, int(round(base + rng.random() * base * 0.5)))

    def holders(self, token_id: str, limit: int = 100, cursor: Optional[str] = None) -> HoldersPage:
        """
        A page of the synthetic population. percent_of_supply is relative to the
        whole population, so it sums to 100 across all pages.
        """
        balances = self.holder_balances(token_id)
        total = float(balances.sum())
        addresses = self._addresses(token_id, balances.size)
        offset = int(cursor) if cursor and cursor.isdigit() else 0
        end = min(offset + max(limit, 0), balances.size)
        page = []
        for i in range(offset, end):
            pct = float(balances[i] / total * 100) if total > 0 else 0.0
            page.append(
                HolderBalance(
                    address=addresses[i],
                    balance=float(balances[i]),
                    percent_of_supply=pct,
                    category=categorize_holder(pct / 100),
                )
            )
        return HoldersPage(
            count=self.holder_count(token_id),
            holders=tuple(page),
            cursor=str(end) if end < balances.size else None,
        )

    def holder_buckets(self, token_id: str) -> HolderBuckets:
        profile = profile_for(token_id)
        rng = rng_for(token_id, PURPOSE_BUCKETS)
        count = self.holder_count(token_id)
        jitter = 0.9 + rng.random(3) * 0.2
        whale = int(round(count * profile.whale_ratio * jitter[0]))
        shark = int(round(count * profile.shark_ratio * jitter[1]))
        dolphin = int(round(count * profile.dolphin_ratio * jitter[2]))
        return HolderBuckets(whale=whale, shark=shark, dolphin=dolphin, fish=max(0, count - whale - shark - dolphin))

    def lorenz_points(self, token_id: str, max_points: int = 50) -> List[Tuple[float, float]]:
        """Lorenz curve of the synthetic balances, thinned to about `max_points` steps."""
        curve = lorenz_curve(self.holder_balances(token_id))
        n = len(curve) - 1
        step = max(1, n // max(1, max_points))
        indices = list(range(step, n + 1, step))
        if indices[-1] != n:
            indices.append(n)
        return [curve[0]] + [curve[i] for i in indices]

    def metrics(self, token_id: str, nakamoto_threshold: float = 0.51) -> TokenMetrics:
        """Engine output over the synthetic balances, so every figure agrees with `holders`."""
        buckets = self.holder_buckets(token_id)
        return TokenMetrics(
            token_id=token_id,
            metrics=compute_distribution_metrics(self.holder_balances(token_id), nakamoto_threshold),
            holder_count=buckets.total,
            holder_buckets=buckets,
            timestamp_ms=self._anchor_ms(),
        )

    def holder_time_series(self, token_id: str, days: int = 180) -> List[HolderTimeSeriesPoint]:
        profile = profile_for(token_id)
        rng = rng_for(token_id, PURPOSE_HOLDER_TS)
        holders = profile.ts_holders_base + rng.random() * profile.ts_holders_span
        monthly = profile.monthly_growth_base + rng.random() * profile.monthly_growth_span
        daily = (1 + monthly) ** (1 / 30) - 1
        gini = profile.gini_base + rng.random() * profile.gini_span
        trend = profile.gini_trend + (rng.random() - 0.5) * profile.gini_trend_jitter
        anchor = self._anchor_ms()

        points: List[HolderTimeSeriesPoint] = []
        for i in range(days, -1, -1):
            u = rng.random(6)
            holders *= 1 + daily + (u[0] - 0.5) * 0.01
            gini = min(0.95, max(0.3, gini + trend + (u[1] - 0.5) * 0.002))
            top10 = min(0.95, max(0.3, 0.3 + gini * 0.5 + (u[2] - 0.5) * 0.05))
            whale = int(round(holders * profile.whale_ratio * (0.9 + u[3] * 0.2)))
            shark = int(round(holders * profile.shark_ratio * (0.9 + u[4] * 0.2)))
            dolphin = int(round(holders * profile.dolphin_ratio * (0.9 + u[5] * 0.2)))
            points.append(
                HolderTimeSeriesPoint(
                    timestamp_ms=anchor - i * DAY_MS,
                    total_holders=int(round(holders)),
                    gini=float(gini),
                    top10_pct=float(top10),
                    whale_count=whale,
                    shark_count=shark,
                    dolphin_count=dolphin,
                    fish_count=max(0, int(round(holders)) - whale - shark - dolphin),
                )
            )
        return points

    def protocol_tvl(self, token_id: str) -> ProtocolTvl:
        rng = rng_for(token_id, PURPOSE_TVL)
        tvl = float(10 ** rng.uniform(6, 9))
        token = get_token(token_id)
        return ProtocolTvl(name=token.name if token else token_id, tvl=tvl, chain_tvls={"Solana": tvl})
