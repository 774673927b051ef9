"""
Distribution metrics: inequality and concentration measures, composite score, holder behavior.
"""

from __future__ import annotations

from .behavior import HolderBehavior, SnapshotEntry, classify_holder_behavior, holding_duration, turnover_rate
from .comparison import DecentralizationScore, compare_distributions, decentralization_score, grade_for
from .distribution import (
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

__all__ = [
    "PALMA_SENTINEL",
    "DecentralizationScore",
    "HolderBehavior",
    "SnapshotEntry",
    "categorize_holder",
    "classify_holder_behavior",
    "compare_distributions",
    "compute_distribution_metrics",
    "decentralization_score",
    "gini",
    "grade_for",
    "herfindahl_index",
    "hhi_10000",
    "holder_buckets",
    "holding_duration",
    "lorenz_curve",
    "median_holding",
    "nakamoto_coefficient",
    "normalized_entropy",
    "palma_ratio",
    "shannon_entropy",
    "top_fraction_share",
    "top_n_concentration",
    "turnover_rate",
]
