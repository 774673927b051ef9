"""
Holder behavior over caller-supplied snapshots. Nothing here stores history;
the snapshot store is an external collaborator.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Sequence

import numpy as np

DAY_MS = 86_400_000


class HolderBehavior(str, enum.Enum):
    NEW_ENTRANT = "new_entrant"
    EXITED = "exited"
    FLIPPER = "flipper"
    DIAMOND_HANDS = "diamond_hands"
    ACCUMULATOR = "accumulator"
    DISTRIBUTOR = "distributor"


@dataclass(frozen=True)
class SnapshotEntry:
    address: str
    balance: float
    timestamp_ms: int


@dataclass(frozen=True)
class HoldingDurationStats:
    avg: float = 0.0
    median: float = 0.0
    p90: float = 0.0
    min: float = 0.0
    max: float = 0.0


@dataclass(frozen=True)
class Turnover:
    entered: int
    exited: int
    turnover_pct: float


def classify_holder_behavior(snapshots: Sequence[Sequence[SnapshotEntry]]) -> Dict[str, HolderBehavior]:
    """
    Label every address seen in the first or last snapshot.

    Windows shorter than a week mark everyone still present as a flipper.
    Over 180+ days a holder whose balance moved under 10% is diamond hands;
    otherwise a move beyond +/-20% makes an accumulator or distributor.
    Fewer than two snapshots yields no labels.
    """
    if len(snapshots) < 2:
        return {}
    first = {e.address: e for e in snapshots[0]}
    last = {e.address: e for e in snapshots[-1]}
    if snapshots[0] and snapshots[-1]:
        days = (snapshots[-1][0].timestamp_ms - snapshots[0][0].timestamp_ms) / DAY_MS
    else:
        days = 0.0

    out: Dict[str, HolderBehavior] = {}
    for addr in list(first) + [a for a in last if a not in first]:
        was_in, is_in = addr in first, addr in last
        if not was_in:
            out[addr] = HolderBehavior.NEW_ENTRANT
            continue
        if not is_in:
            out[addr] = HolderBehavior.EXITED
            continue
        old, new = first[addr].balance, last[addr].balance
        change = (new - old) / old if old > 0 else 0.0
        if days < 7:
            out[addr] = HolderBehavior.FLIPPER
        elif days >= 180 and abs(change) < 0.1:
            out[addr] = HolderBehavior.DIAMOND_HANDS
        elif change > 0.2:
            out[addr] = HolderBehavior.ACCUMULATOR
        elif change < -0.2:
            out[addr] = HolderBehavior.DISTRIBUTOR
        else:
            out[addr] = HolderBehavior.DIAMOND_HANDS
    return out


def holding_duration(first_last_seen: Iterable[tuple[int, int]]) -> HoldingDurationStats:
    """Stats in days over (first_seen_ms, last_seen_ms) pairs."""
    days = np.sort(np.asarray([(b - a) / DAY_MS for a, b in first_last_seen], dtype=float))
    if days.size == 0:
        return HoldingDurationStats()
    return HoldingDurationStats(
        avg=float(days.mean()),
        median=float(days[days.size // 2]),
        p90=float(days[int(days.size * 0.9)]),
        min=float(days[0]),
        max=float(days[-1]),
    )


def turnover_rate(before: Mapping[str, float], after: Mapping[str, float]) -> Turnover:
    """Entries and exits between two address->balance snapshots, over the union of addresses."""
    entered = sum(1 for a in after if a not in before)
    exited = sum(1 for a in before if a not in after)
    total = len(set(before) | set(after))
    return Turnover(entered=entered, exited=exited, turnover_pct=(entered + exited) / total if total else 0.0)
