"""Holder behavior classification over caller-supplied snapshots."""
from __future__ import annotations

import pytest

from token_analytics.metrics.behavior import (
    DAY_MS,
    HolderBehavior,
    SnapshotEntry,
    classify_holder_behavior,
    holding_duration,
    turnover_rate,
)


def _snapshot(day, balances):
    return [SnapshotEntry(address=a, balance=b, timestamp_ms=day * DAY_MS) for a, b in balances.items()]


class TestClassify:
    def test_long_window(self):
        first = _snapshot(0, {"steady": 100, "buyer": 100, "seller": 100, "gone": 5})
        last = _snapshot(200, {"steady": 105, "buyer": 150, "seller": 50, "fresh": 1})
        labels = classify_holder_behavior([first, last])

        assert labels == {
            "steady": HolderBehavior.DIAMOND_HANDS,
            "buyer": HolderBehavior.ACCUMULATOR,
            "seller": HolderBehavior.DISTRIBUTOR,
            "gone": HolderBehavior.EXITED,
            "fresh": HolderBehavior.NEW_ENTRANT,
        }

    def test_short_window_is_flipping(self):
        labels = classify_holder_behavior([_snapshot(0, {"a": 10}), _snapshot(3, {"a": 30})])
        assert labels["a"] == HolderBehavior.FLIPPER

    def test_medium_window_small_move(self):
        labels = classify_holder_behavior([_snapshot(0, {"a": 100}), _snapshot(30, {"a": 110})])
        assert labels["a"] == HolderBehavior.DIAMOND_HANDS

    def test_needs_two_snapshots(self):
        assert classify_holder_behavior([_snapshot(0, {"a": 1})]) == {}


class TestHoldingDuration:
    def test_stats(self):
        pairs = [(0, d * DAY_MS) for d in range(1, 11)]
        stats = holding_duration(pairs)
        assert stats.avg == pytest.approx(5.5)
        assert stats.min == 1.0
        assert stats.max == 10.0
        assert stats.median == 6.0
        assert stats.p90 == 10.0

    def test_empty(self):
        assert holding_duration([]).avg == 0.0


class TestTurnover:
    def test_entries_and_exits(self):
        turnover = turnover_rate({"a": 1, "b": 1, "c": 1}, {"b": 1, "c": 1, "d": 1})
        assert (turnover.entered, turnover.exited) == (1, 1)
        assert turnover.turnover_pct == pytest.approx(0.5)

    def test_empty(self):
        assert turnover_rate({}, {}).turnover_pct == 0.0
