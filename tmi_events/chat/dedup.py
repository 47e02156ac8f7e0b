"""Time-windowed at-most-once filter for subscription notices.

Twitch occasionally delivers the same subscription notice twice. Entries
expire a fixed time after insertion; reading an entry never extends it.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Hashable
from enum import Enum

from ..constants import SUBSCRIPTION_DEDUP_TTL_SECONDS


class DedupResult(Enum):
    FRESH = "fresh"
    DUPLICATE = "duplicate"


class SubscriptionDedupCache:
    """Thread-safe TTL set keyed by any hashable identity.

    Args:
        ttl_seconds: Lifetime of an entry, measured from insertion.
        clock: Monotonic time source; injectable for deterministic tests.

    Example:
        >>> cache = SubscriptionDedupCache(ttl_seconds=300)
        >>> cache.check_and_mark(("12345", 3))
        <DedupResult.FRESH: 'fresh'>
        >>> cache.check_and_mark(("12345", 3))
        <DedupResult.DUPLICATE: 'duplicate'>
    """

    def __init__(
        self,
        ttl_seconds: float = SUBSCRIPTION_DEDUP_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._expiry: dict[Hashable, float] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def check_and_mark(self, key: Hashable) -> DedupResult:
        """Atomically test for a live entry and insert one if absent."""
        with self._lock:
            now = self._clock()
            self._purge(now)
            if key in self._expiry:
                return DedupResult.DUPLICATE
            self._expiry[key] = now + self._ttl
            return DedupResult.FRESH

    def purge_expired(self) -> int:
        """Drop expired entries, returning how many were removed."""
        with self._lock:
            return self._purge(self._clock())

    def _purge(self, now: float) -> int:
        # Fixed TTL keeps deadlines in insertion order; stop at the first live one.
        removed = 0
        while self._expiry:
            oldest = next(iter(self._expiry))
            if self._expiry[oldest] > now:
                break
            del self._expiry[oldest]
            removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for deadline in self._expiry.values() if deadline > now)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            deadline = self._expiry.get(key)
            return deadline is not None and deadline > self._clock()
