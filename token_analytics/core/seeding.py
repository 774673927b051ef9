"""
Canonical RNG seeding for synthetic data: one deterministic seed per (token, purpose).
Never use Python's built-in hash() (salted per process, not stable).

Contract: seed versioning
- SEED_VERSION is the current version of the hashing scheme (purposes, encoding, algorithm).
- If you change hashing scheme, purpose set, or encoding, bump SEED_VERSION; every
  synthetic dataset changes with it.
"""

from __future__ import annotations

import hashlib

import numpy as np

SEED_VERSION = 2

# Purpose suffixes (single canonical module; reference these, never string literals)
PURPOSE_PRICE = "_price"
PURPOSE_HOLDERS = "_holders"
PURPOSE_METRICS = "_metrics"
PURPOSE_BUCKETS = "_buckets"
PURPOSE_HOLDER_TS = "_holder_ts"
PURPOSE_TVL = "_tvl"
PURPOSE_ADDRESSES = "_addresses"
PURPOSE_OHLCV = "_ohlcv"
PURPOSE_TRADING = "_trading"


def seed_for(token_id: str, purpose: str, version: int = SEED_VERSION) -> int:
    """
    Derive a stable 63-bit seed from token_id and a purpose suffix.
    Same (token_id, purpose, version) yields the same seed across process runs.
    """
    payload = f"{token_id}{purpose}|{version}".encode("utf-8")
    digest = hashlib.sha256(payload).digest()
    seed = int.from_bytes(digest[:8], byteorder="big")
    return seed % (2**63)


def rng_for(token_id: str, purpose: str, version: int = SEED_VERSION) -> np.random.Generator:
    """Return a fresh numpy Generator for (token_id, purpose); each call restarts the stream."""
    return np.random.default_rng(seed_for(token_id, purpose, version=version))


__all__ = [
    "PURPOSE_ADDRESSES",
    "PURPOSE_BUCKETS",
    "PURPOSE_HOLDERS",
    "PURPOSE_HOLDER_TS",
    "PURPOSE_METRICS",
    "PURPOSE_OHLCV",
    "PURPOSE_PRICE",
    "PURPOSE_TRADING",
    "PURPOSE_TVL",
    "SEED_VERSION",
    "rng_for",
    "seed_for",
]
