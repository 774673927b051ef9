"""Composite decentralization score, grading and distribution comparison."""
from __future__ import annotations

import pytest

from token_analytics.metrics.comparison import (
    WEIGHTS,
    compare_distributions,
    decentralization_score,
    grade_for,
)
from token_analytics.metrics.distribution import compute_distribution_metrics
from token_analytics.providers.base import DistributionMetrics


def _metrics(**overrides):
    base = dict(
        gini=0.5,
        hhi=5000.0,
        nakamoto_coefficient=25,
        palma_ratio=1.0,
        shannon_entropy=3.0,
        normalized_entropy=0.5,
        top1_percent=0.1,
        top10_percent=0.5,
        median_holding=1.0,
    )
    base.update(overrides)
    return DistributionMetrics(**base)


class TestScore:
    def test_weights_sum_to_one(self):
        assert sum(WEIGHTS.values()) == pytest.approx(1.0)

    def test_all_components_at_half(self):
        score = decentralization_score(_metrics())
        assert score.overall == pytest.approx(50.0)
        assert score.grade == "C"
        assert set(score.components) == set(WEIGHTS)
        assert score.components["nakamoto"] == 50.0

    def test_nakamoto_component_caps(self):
        score = decentralization_score(_metrics(nakamoto_coefficient=500))
        assert score.components["nakamoto"] == 100.0

    def test_perfect_distribution(self):
        score = decentralization_score(
            _metrics(gini=0.0, hhi=0.0, nakamoto_coefficient=50, normalized_entropy=1.0),
            holder_growth=100,
            stability=100,
        )
        assert score.overall == 100.0
        assert score.grade == "A"

    def test_signals_clamped(self):
        score = decentralization_score(_metrics(), holder_growth=250, stability=-10)
        assert score.components["holder_growth"] == 100.0
        assert score.components["stability"] == 0.0

    def test_monopoly_scores_low(self):
        score = decentralization_score(compute_distribution_metrics([0] * 9 + [100]), holder_growth=0, stability=0)
        assert score.overall < 20.0
        assert score.grade == "F"

    @pytest.mark.parametrize(
        "value,grade", [(95, "A"), (80, "A"), (79.99, "B"), (60, "B"), (45, "C"), (20, "D"), (19.9, "F")]
    )
    def test_grade_cutoffs(self, value, grade):
        assert grade_for(value) == grade


class TestCompareDistributions:
    def test_positive_delta_means_left_more_decentralized(self):
        even = [10] * 10
        skewed = [91] + [1] * 9
        result = compare_distributions(even, skewed)
        for name, row in result.items():
            assert row["delta"] > 0, name

    def test_identical_distributions(self):
        result = compare_distributions([1, 2, 3], [3, 2, 1])
        assert all(row["delta"] == pytest.approx(0.0) for row in result.values())
        assert set(result) == {"gini", "hhi", "nakamoto", "entropy", "normalized_entropy", "palma"}
