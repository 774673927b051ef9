"""
Composite decentralization score and side-by-side distribution comparison.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from ..providers.base import DistributionMetrics
from .distribution import gini, hhi_10000, nakamoto_coefficient, normalized_entropy, palma_ratio, shannon_entropy

# Component weights; they sum to 1.
WEIGHTS: Dict[str, float] = {
    "nakamoto": 0.25,
    "gini": 0.20,
    "entropy": 0.20,
    "hhi": 0.15,
    "holder_growth": 0.10,
    "stability": 0.10,
}
# Nakamoto coefficient that earns the full component score
NAKAMOTO_CAP = 50
NEUTRAL_SIGNAL = 50.0

GRADE_CUTOFFS = (("A", 80.0), ("B", 60.0), ("C", 40.0), ("D", 20.0))


@dataclass(frozen=True)
class DecentralizationScore:
    overall: float
    grade: str
    components: Dict[str, float] = field(default_factory=dict)


def grade_for(score: float) -> str:
    for grade, cutoff in GRADE_CUTOFFS:
        if score >= cutoff:
            return grade
    return "F"


def _clamp_pct(value: float) -> float:
    return min(100.0, max(0.0, value))


def decentralization_score(
    metrics: DistributionMetrics,
    holder_growth: Optional[float] = None,
    stability: Optional[float] = None,
) -> DecentralizationScore:
    """
    Blend distribution metrics into a 0-100 score with a letter grade.

    holder_growth and stability are 0-100 signals supplied by the caller
    (neutral 50 when unknown). Reported values are rounded to 0.1; the grade
    is taken from the unrounded total.
    """
    components = {
        "nakamoto": _clamp_pct(metrics.nakamoto_coefficient / NAKAMOTO_CAP * 100.0),
        "gini": _clamp_pct((1.0 - metrics.gini) * 100.0),
        "entropy": _clamp_pct(metrics.normalized_entropy * 100.0),
        "hhi": _clamp_pct((1.0 - metrics.hhi / 10000.0) * 100.0),
        "holder_growth": _clamp_pct(NEUTRAL_SIGNAL if holder_growth is None else holder_growth),
        "stability": _clamp_pct(NEUTRAL_SIGNAL if stability is None else stability),
    }
    overall = sum(components[k] * w for k, w in WEIGHTS.items())
    return DecentralizationScore(
        overall=round(overall, 1),
        grade=grade_for(overall),
        components={k: round(v, 1) for k, v in components.items()},
    )


def compare_distributions(left: Iterable[float], right: Iterable[float]) -> Dict[str, Dict[str, float]]:
    """
    Per-metric {left, right, delta}. delta is oriented so that a positive
    value always means `left` is the more decentralized distribution.
    """
    a, b = list(left), list(right)

    def lower_is_better(fn) -> Dict[str, float]:
        la, rb = float(fn(a)), float(fn(b))
        return {"left": la, "right": rb, "delta": rb - la}

    def higher_is_better(fn) -> Dict[str, float]:
        la, rb = float(fn(a)), float(fn(b))
        return {"left": la, "right": rb, "delta": la - rb}

    return {
        "gini": lower_is_better(gini),
        "hhi": lower_is_better(hhi_10000),
        "nakamoto": higher_is_better(nakamoto_coefficient),
        "entropy": higher_is_better(shannon_entropy),
        "normalized_entropy": higher_is_better(normalized_entropy),
        "palma": lower_is_better(palma_ratio),
    }
