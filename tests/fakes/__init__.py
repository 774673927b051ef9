"""Fake provider clients and a manual clock for tests (no live network)."""

from .providers import (
    FakeClock,
    FakeSource,
    FakeSourceAlwaysFail,
    FakeSourceFailNThenSucceed,
    FakeSourceHangs,
    FakeSourceInvalidPayload,
    make_holders,
)

__all__ = [
    "FakeClock",
    "FakeSource",
    "FakeSourceAlwaysFail",
    "FakeSourceFailNThenSucceed",
    "FakeSourceHangs",
    "FakeSourceInvalidPayload",
    "make_holders",
]
