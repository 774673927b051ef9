"""Concentration metrics: known values, bounds and degenerate inputs."""
from __future__ import annotations

import math

import numpy as np
import pytest

from token_analytics.metrics.distribution import (
    PALMA_SENTINEL,
    categorize_holder,
    compute_distribution_metrics,
    gini,
    herfindahl_index,
    hhi_10000,
    holder_buckets,
    lorenz_curve,
    median_holding,
    nakamoto_coefficient,
    normalized_entropy,
    palma_ratio,
    shannon_entropy,
    top_fraction_share,
    top_n_concentration,
)
from token_analytics.providers.base import HolderBalance, WalletCategory


class TestGini:
    def test_equal_is_zero(self):
        assert gini([10, 10, 10, 10]) == pytest.approx(0.0)

    def test_one_holder_has_everything(self):
        # (n - 1) / n for a single non-zero holder among n
        assert gini([0, 0, 0, 100]) == pytest.approx(0.75)

    def test_order_independent(self):
        assert gini([1, 5, 2, 9]) == pytest.approx(gini([9, 2, 5, 1]))

    def test_bounds_on_random_input(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            g = gini(rng.pareto(1.5, size=200))
            assert 0.0 <= g <= 1.0

    @pytest.mark.parametrize("balances", [[], [5], [0, 0, 0]])
    def test_degenerate(self, balances):
        assert gini(balances) == 0.0

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            gini([1, -1])

    def test_rejects_nan(self):
        with pytest.raises(ValueError):
            gini([1, math.nan])


class TestNakamoto:
    def test_single_holder(self):
        assert nakamoto_coefficient([100]) == 1

    def test_four_equal(self):
        assert nakamoto_coefficient([25, 25, 25, 25]) == 3

    def test_custom_threshold(self):
        assert nakamoto_coefficient([25, 25, 25, 25], threshold=0.5) == 2

    def test_unsorted_input(self):
        assert nakamoto_coefficient([1, 1, 60, 38]) == 1

    def test_degenerate(self):
        assert nakamoto_coefficient([]) == 0
        assert nakamoto_coefficient([0, 0]) == 2


class TestHerfindahl:
    def test_monopoly(self):
        assert herfindahl_index([100]) == pytest.approx(1.0)
        assert hhi_10000([100]) == pytest.approx(10000.0)

    def test_equal_split(self):
        assert hhi_10000([1, 1, 1, 1]) == pytest.approx(2500.0)

    def test_zero_total(self):
        assert herfindahl_index([0, 0]) == 0.0


class TestEntropy:
    def test_uniform_is_log2_n(self):
        assert shannon_entropy([1] * 8) == pytest.approx(3.0)
        assert normalized_entropy([1] * 8) == pytest.approx(1.0)

    def test_single_holder(self):
        assert shannon_entropy([10]) == 0.0
        assert normalized_entropy([10]) == 0.0

    def test_zeros_ignored(self):
        assert shannon_entropy([1, 1, 0, 0]) == pytest.approx(1.0)


class TestPalma:
    def test_equal(self):
        assert palma_ratio([1] * 10) == pytest.approx(0.25)

    def test_bottom_holds_nothing(self):
        assert palma_ratio([0, 0, 0, 0, 10]) == PALMA_SENTINEL

    def test_empty(self):
        assert palma_ratio([]) == 0.0


class TestLorenz:
    def test_endpoints(self):
        curve = lorenz_curve([5, 1, 3, 1])
        assert curve[0] == (0.0, 0.0)
        assert curve[-1] == (1.0, 1.0)
        assert len(curve) == 5

    def test_monotone_and_below_diagonal(self):
        curve = lorenz_curve([5, 1, 3, 1])
        ys = [y for _, y in curve]
        assert ys == sorted(ys)
        assert all(y <= x + 1e-12 for x, y in curve)

    def test_empty_and_zero_total(self):
        assert lorenz_curve([]) == [(0.0, 0.0), (1.0, 1.0)]
        assert lorenz_curve([0, 0]) == [(0.0, 0.0), (0.5, 0.5), (1.0, 1.0)]


class TestShares:
    def test_top_n(self):
        assert top_n_concentration([50, 30, 20], 1) == pytest.approx(0.5)
        assert top_n_concentration([50, 30, 20], 10) == pytest.approx(1.0)
        assert top_n_concentration([50, 30, 20], 0) == 0.0

    def test_top_fraction(self):
        assert top_fraction_share([1] * 10, 0.1) == pytest.approx(0.1)

    def test_median(self):
        assert median_holding([1, 3, 2, 10]) == pytest.approx(3.0)
        assert median_holding([5, 1, 9]) == pytest.approx(5.0)
        assert median_holding([]) == 0.0


class TestBuckets:
    @pytest.mark.parametrize(
        "share,category",
        [
            (0.05, WalletCategory.WHALE),
            (0.01, WalletCategory.WHALE),
            (0.005, WalletCategory.SHARK),
            (0.0005, WalletCategory.DOLPHIN),
            (0.00001, WalletCategory.FISH),
        ],
    )
    def test_categorize(self, share, category):
        assert categorize_holder(share) == category

    def test_unmeasured_holders_are_fish(self):
        holders = [
            HolderBalance("a", 10, 5.0),
            HolderBalance("b", 1, 0.5),
            HolderBalance("c", 1, 0.001),
        ]
        buckets = holder_buckets(holders, holder_count=100)
        assert (buckets.whale, buckets.shark, buckets.dolphin, buckets.fish) == (1, 1, 0, 98)
        assert buckets.total == 100

    def test_preset_category_wins(self):
        buckets = holder_buckets([HolderBalance("a", 1, 0.0, category=WalletCategory.WHALE)])
        assert buckets.whale == 1


class TestComputeDistributionMetrics:
    def test_bundle(self):
        m = compute_distribution_metrics([40, 30, 20, 10])
        assert m.gini == pytest.approx(gini([40, 30, 20, 10]))
        assert m.hhi == pytest.approx(3000.0)
        assert m.nakamoto_coefficient == 2
        assert m.top1_percent == pytest.approx(0.4)
        assert m.top10_percent == pytest.approx(0.4)
        assert m.median_holding == pytest.approx(30.0)

    def test_top_shares_scale_with_holder_count(self):
        balances = list(range(200, 0, -1))
        total = sum(balances)
        m = compute_distribution_metrics(balances)
        assert m.top1_percent == pytest.approx((200 + 199) / total)
        assert m.top10_percent == pytest.approx(sum(balances[:20]) / total)

    def test_empty(self):
        m = compute_distribution_metrics([])
        assert m.gini == 0.0
        assert m.nakamoto_coefficient == 0
        assert m.palma_ratio == 0.0
