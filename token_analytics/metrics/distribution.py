"""
Concentration and inequality measures over holder balances.
Pure functions: any iterable of non-negative numbers in, floats out. Empty and
single-holder inputs return the documented degenerate value instead of raising.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..providers.base import DistributionMetrics, HolderBalance, HolderBuckets, WalletCategory

# Palma ratio when the bottom 40% hold nothing; finite so results stay orderable.
PALMA_SENTINEL = 100.0
DEFAULT_NAKAMOTO_THRESHOLD = 0.51

# Bucket thresholds as a fraction of supply
WHALE_MIN = 0.01
SHARK_MIN = 0.001
DOLPHIN_MIN = 0.0001


def _as_array(balances: Iterable[float]) -> np.ndarray:
    arr = np.asarray(list(balances), dtype=float)
    if arr.size and (not np.all(np.isfinite(arr)) or np.any(arr < 0)):
        raise ValueError("balances must be finite and non-negative")
    return arr


def gini(balances: Iterable[float]) -> float:
    """
    Gini coefficient via the sorted closed form
    G = 2 * sum(i * x_i) / (n * sum(x)) - (n + 1) / n, ascending x, i from 1.
    0 for n <= 1 or zero total. Clamped to [0, 1] against float noise.
    """
    x = np.sort(_as_array(balances))
    n = x.size
    total = float(x.sum())
    if n <= 1 or total <= 0:
        return 0.0
    idx = np.arange(1, n + 1, dtype=float)
    g = (2.0 * float(np.dot(idx, x))) / (n * total) - (n + 1.0) / n
    return float(min(1.0, max(0.0, g)))


def herfindahl_index(balances: Iterable[float]) -> float:
    """Sum of squared shares, in [0, 1]."""
    x = _as_array(balances)
    total = float(x.sum())
    if total <= 0:
        return 0.0
    shares = x / total
    return float(np.sum(shares * shares))


def hhi_10000(balances: Iterable[float]) -> float:
    """HHI on the antitrust 0-10,000 scale."""
    return herfindahl_index(balances) * 10000.0


def nakamoto_coefficient(balances: Iterable[float], threshold: float = DEFAULT_NAKAMOTO_THRESHOLD) -> int:
    """
    Fewest top holders whose combined share reaches `threshold`.
    Returns the holder count when the threshold cannot be reached (including
    empty input and zero total supply).
    """
    x = np.sort(_as_array(balances))[::-1]
    n = int(x.size)
    total = float(x.sum())
    if n == 0 or total <= 0:
        return n
    cum = np.cumsum(x) / total
    hits = np.nonzero(cum >= threshold)[0]
    return int(hits[0]) + 1 if hits.size else n


def shannon_entropy(balances: Iterable[float]) -> float:
    """-sum(p * log2 p) over non-zero shares, in bits."""
    x = _as_array(balances)
    total = float(x.sum())
    if x.size == 0 or total <= 0:
        return 0.0
    p = x[x > 0] / total
    return float(max(0.0, -np.sum(p * np.log2(p))))


def normalized_entropy(balances: Iterable[float]) -> float:
    """Shannon entropy divided by log2(n); 0 for n <= 1."""
    x = _as_array(balances)
    n = x.size
    if n <= 1:
        return 0.0
    return float(min(1.0, shannon_entropy(x) / math.log2(n)))


def palma_ratio(balances: Iterable[float]) -> float:
    """Top ceil(10%) share over bottom ceil(40%) share, by ascending balance."""
    x = np.sort(_as_array(balances))
    n = x.size
    total = float(x.sum())
    if n == 0 or total <= 0:
        return 0.0
    bottom = float(x[: math.ceil(n * 0.4)].sum())
    top = float(x[n - math.ceil(n * 0.1):].sum())
    if bottom <= 0:
        return PALMA_SENTINEL
    return top / bottom


def lorenz_curve(balances: Iterable[float]) -> List[Tuple[float, float]]:
    """(cumulative holder share, cumulative wealth share) from (0, 0) to (1, 1)."""
    x = np.sort(_as_array(balances))
    n = x.size
    if n == 0:
        return [(0.0, 0.0), (1.0, 1.0)]
    total = float(x.sum())
    xs = np.arange(1, n + 1, dtype=float) / n
    ys = xs.copy() if total <= 0 else np.cumsum(x) / total
    points = [(0.0, 0.0)] + [(float(a), float(b)) for a, b in zip(xs, ys)]
    points[-1] = (1.0, 1.0)
    return points


def top_n_concentration(balances: Iterable[float], n: int) -> float:
    """Share of supply held by the n largest holders, in [0, 1]."""
    x = np.sort(_as_array(balances))[::-1]
    total = float(x.sum())
    if x.size == 0 or total <= 0 or n <= 0:
        return 0.0
    return float(min(1.0, x[:n].sum() / total))


def top_fraction_share(balances: Iterable[float], fraction: float) -> float:
    """Share of supply held by the top ceil(fraction * n) holders."""
    x = _as_array(balances)
    if x.size == 0:
        return 0.0
    # round first so float noise such as 20.000000000000004 does not add a holder
    return top_n_concentration(x, math.ceil(round(x.size * fraction, 9)))


def median_holding(balances: Iterable[float]) -> float:
    """Upper middle element for even n, not the mean of the two middles."""
    x = np.sort(_as_array(balances))
    return float(x[x.size // 2]) if x.size else 0.0


def categorize_holder(share: float) -> WalletCategory:
    """Bucket by fraction of supply: whale >= 1%, shark >= 0.1%, dolphin >= 0.01%, else fish."""
    if share >= WHALE_MIN:
        return WalletCategory.WHALE
    if share >= SHARK_MIN:
        return WalletCategory.SHARK
    if share >= DOLPHIN_MIN:
        return WalletCategory.DOLPHIN
    return WalletCategory.FISH


def holder_buckets(holders: Sequence[HolderBalance], holder_count: Optional[int] = None) -> HolderBuckets:
    """
    Count holders per wallet category from percent_of_supply.

    Only the largest holders are usually measured; when `holder_count` is the
    full population, the unmeasured remainder is counted as fish.
    """
    counts = {c: 0 for c in WalletCategory}
    for h in holders:
        category = h.category or categorize_holder(h.percent_of_supply / 100.0)
        counts[category] += 1
    if holder_count is not None and holder_count > len(holders):
        counts[WalletCategory.FISH] += holder_count - len(holders)
    return HolderBuckets(
        whale=counts[WalletCategory.WHALE],
        shark=counts[WalletCategory.SHARK],
        dolphin=counts[WalletCategory.DOLPHIN],
        fish=counts[WalletCategory.FISH],
    )


def compute_distribution_metrics(
    balances: Iterable[float],
    nakamoto_threshold: float = DEFAULT_NAKAMOTO_THRESHOLD,
) -> DistributionMetrics:
    x = _as_array(balances)
    return DistributionMetrics(
        gini=gini(x),
        hhi=hhi_10000(x),
        nakamoto_coefficient=nakamoto_coefficient(x, nakamoto_threshold),
        palma_ratio=palma_ratio(x),
        shannon_entropy=shannon_entropy(x),
        normalized_entropy=normalized_entropy(x),
        top1_percent=top_fraction_share(x, 0.01),
        top10_percent=top_fraction_share(x, 0.10),
        median_holding=median_holding(x),
    )
