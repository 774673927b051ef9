"""
In-memory LRU cache with per-entry TTL, plus a background janitor.

One cache belongs to one provider client. get/set/evict run under a single
lock; get_or_set releases it while the fetcher runs, so two concurrent misses
on the same key may both fetch (last write wins). That is accepted: there is
no single-flight deduplication here.
"""
from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class _Miss:
    _instance: Optional[_Miss] = None

    def __new__(cls) -> _Miss:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Any = _Miss()


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    key: str
    value: V
    expires_at: float


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    size: int
    max_size: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def as_dict(self) -> Dict[str, float]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": self.hit_rate,
        }


class TTLCache(Generic[V]):
    """Bounded LRU mapping of string keys to values that expire."""

    def __init__(
        self,
        max_size: int = 100,
        default_ttl_s: float = 60.0,
        *,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.name = name
        self.max_size = max_size
        self.default_ttl_s = default_ttl_s
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str, default: Any = MISS) -> Any:
        """Return the live value for key, or `default` (MISS) if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return default
            if self._clock() > entry.expires_at:
                del self._entries[key]
                self._misses += 1
                return default
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(self, key: str, value: V, ttl_s: Optional[float] = None) -> None:
        ttl = self.default_ttl_s if ttl_s is None else ttl_s
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache %s evicted LRU key %s", self.name, evicted)
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)

    def has(self, key: str) -> bool:
        """True if key is live. Does not touch hit/miss counters or recency."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def prune(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now > e.expires_at]
            for k in expired:
                del self._entries[k]
            return len(expired)

    def get_or_set(self, key: str, fetcher: Callable[[], V], ttl_s: Optional[float] = None) -> V:
        cached = self.get(key)
        if cached is not MISS:
            return cached
        value = fetcher()
        self.set(key, value, ttl_s)
        return value

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                max_size=self.max_size,
            )


class CacheJanitor:
    """
    Daemon thread that prunes expired entries from a set of caches.

    Best effort: a failing prune pass is logged and the loop carries on.
    Request paths never wait on it.
    """

    def __init__(self, caches: Iterable[TTLCache], interval_s: float = 60.0) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        self._caches = list(caches)
        self._interval_s = interval_s
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        pruned = 0
        for cache in self._caches:
            try:
                pruned += cache.prune()
            except Exception:
                logger.exception("Cache janitor failed to prune %s", cache.name)
        return pruned

    def _loop(self) -> None:
        while not self._stop.wait(self._interval_s):
            pruned = self.run_once()
            if pruned:
                logger.debug("Cache janitor pruned %d expired entries", pruned)

    def start(self) -> CacheJanitor:
        if self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="cache-janitor", daemon=True)
        self._thread.start()
        logger.info("Cache janitor started (interval %.1fs, %d caches)", self._interval_s, len(self._caches))
        return self

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Cache janitor stopped")

    def __enter__(self) -> CacheJanitor:
        return self.start()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
