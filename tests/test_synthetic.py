"""
Synthetic data: deterministic per (token, purpose), profile-shaped, and
internally consistent (holders, metrics and buckets agree).
"""
from __future__ import annotations

import pytest

from token_analytics.core.seeding import PURPOSE_HOLDERS, PURPOSE_PRICE, rng_for, seed_for
from token_analytics.synthetic import (
    DAY_MS,
    PROFILES,
    ProfileKind,
    SyntheticDataGenerator,
    profile_for,
)

FIXED_NOW = 1_700_000_000.0


def _gen():
    return SyntheticDataGenerator(clock=lambda: FIXED_NOW)


class TestSeeding:
    def test_seed_stable(self):
        assert seed_for("meta", PURPOSE_PRICE) == seed_for("meta", PURPOSE_PRICE)
        assert seed_for("meta", PURPOSE_PRICE) != seed_for("meta", PURPOSE_HOLDERS)
        assert seed_for("meta", PURPOSE_PRICE) != seed_for("jup", PURPOSE_PRICE)
        assert 0 <= seed_for("meta", PURPOSE_PRICE) < 2**63

    def test_version_changes_seed(self):
        assert seed_for("meta", PURPOSE_PRICE, version=1) != seed_for("meta", PURPOSE_PRICE, version=2)

    def test_rng_restarts(self):
        assert rng_for("meta", PURPOSE_PRICE).random() == rng_for("meta", PURPOSE_PRICE).random()


class TestProfiles:
    @pytest.mark.parametrize(
        "token_id,kind",
        [
            ("meta", ProfileKind.EGALITARIAN),
            ("bonk", ProfileKind.COMMUNITY),
            ("jup", ProfileKind.CONCENTRATED),
            ("unknown-token", ProfileKind.CONCENTRATED),
        ],
    )
    def test_profile_by_category(self, token_id, kind):
        assert profile_for(token_id) is PROFILES[kind]


class TestDeterminism:
    def test_same_inputs_same_outputs(self):
        a, b = _gen(), _gen()
        assert a.current_price("meta") == b.current_price("meta")
        assert a.holders("meta", 20) == b.holders("meta", 20)
        assert a.metrics("meta") == b.metrics("meta")
        assert a.protocol_tvl("jup") == b.protocol_tvl("jup")
        assert a.holder_time_series("meta", 10) == b.holder_time_series("meta", 10)
        assert a.ohlcv("bonk", 30) == b.ohlcv("bonk", 30)
        assert a.trading_metrics("jup") == b.trading_metrics("jup")

    def test_tokens_differ(self):
        gen = _gen()
        assert gen.current_price("meta").price != gen.current_price("jup").price


class TestPrices:
    def test_history_shape(self):
        points = _gen().price_history("meta", days=30)
        assert len(points) == 31
        stamps = [p.timestamp_ms for p in points]
        assert stamps == sorted(stamps)
        assert stamps[1] - stamps[0] == DAY_MS
        assert stamps[-1] % DAY_MS == 0
        assert all(p.price > 0 for p in points)

    def test_windows_agree(self):
        gen = _gen()
        short = gen.price_history("meta", days=7)
        long = gen.price_history("meta", days=90)
        assert [p.price for p in short] == [p.price for p in long[-8:]]
        assert gen.current_price("meta").price == long[-1].price

    def test_history_capped_at_one_year(self):
        assert len(_gen().price_history("meta", days=5000)) == 366


class TestHolders:
    def test_pages_are_contiguous(self):
        gen = _gen()
        first = gen.holders("meta", limit=100)
        second = gen.holders("meta", limit=100, cursor=first.cursor)
        assert first.cursor == "100"
        assert second.cursor is None
        assert len(first.holders) + len(second.holders) == gen.population
        balances = [h.balance for h in first.holders + second.holders]
        assert balances == sorted(balances, reverse=True)

    def test_percent_sums_to_100_over_population(self):
        page = _gen().holders("bonk", limit=1000)
        assert sum(h.percent_of_supply for h in page.holders) == pytest.approx(100.0)
        assert all(h.category is not None for h in page.holders)

    def test_addresses_look_like_base58(self):
        page = _gen().holders("meta", limit=5)
        assert all(len(h.address) == 44 for h in page.holders)
        assert not any(c in h.address for h in page.holders for c in "0OIl")

    def test_count_covers_population(self):
        gen = _gen()
        assert gen.holders("meta").count >= gen.population

    def test_metrics_consistent_with_buckets(self):
        gen = _gen()
        metrics = gen.metrics("jup")
        assert metrics.holder_count == metrics.holder_buckets.total
        assert metrics.holder_buckets == gen.holder_buckets("jup")
        assert 0.0 <= metrics.metrics.gini <= 1.0
        assert metrics.metrics.nakamoto_coefficient >= 1

    def test_time_series(self):
        series = _gen().holder_time_series("meta", days=30)
        assert len(series) == 31
        assert all(0.3 <= p.gini <= 0.95 for p in series)
        assert all(p.fish_count >= 0 for p in series)


class TestTrading:
    def test_ohlcv_closes_follow_price_history(self):
        gen = _gen()
        bars = gen.ohlcv("bonk", 60)
        history = gen.price_history("bonk", 60)
        assert len(bars) == len(history)
        assert [b.close for b in bars] == [p.price for p in history]
        assert [b.timestamp for b in bars] == [p.timestamp_ms // 1000 for p in history]
        for bar in bars:
            assert 0 < bar.low <= min(bar.open, bar.close)
            assert max(bar.open, bar.close) <= bar.high
            assert bar.volume > 0

    @pytest.mark.parametrize("token_id,low,high", [("meta", 0.52, 0.58), ("bonk", 0.35, 0.65), ("jup", 0.45, 0.50)])
    def test_buy_pressure_by_profile(self, token_id, low, high):
        trading = _gen().trading_metrics(token_id)
        assert low <= trading.buy_pressure <= high
        assert trading.buy_volume_24h + trading.sell_volume_24h == pytest.approx(trading.volume_24h)
        assert trading.txn_count_24h > 0
        assert trading.liquidity >= trading.volume_24h


class TestLorenzPoints:
    def test_thinned_curve(self):
        points = _gen().lorenz_points("meta")
        assert points[0] == (0.0, 0.0)
        assert points[-1] == (1.0, 1.0)
        assert len(points) == 51
        xs = [x for x, _ in points]
        ys = [y for _, y in points]
        assert xs == sorted(xs)
        assert ys == sorted(ys)
        assert all(y <= x + 1e-9 for x, y in points)

    def test_small_population_keeps_every_point(self):
        points = SyntheticDataGenerator(population=7, clock=lambda: FIXED_NOW).lorenz_points("bonk")
        assert len(points) == 8
        assert points[-1] == (1.0, 1.0)


class TestTvl:
    def test_tvl_range(self):
        tvl = _gen().protocol_tvl("jup")
        assert 1e6 <= tvl.tvl <= 1e9
        assert tvl.name == "Jupiter"
        assert tvl.chain_tvls == {"Solana": tvl.tvl}
