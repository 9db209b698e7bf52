"""
In-memory cache of URLs that recently failed to fetch.

The cache is an explicit object handed to the components that need it, so
each run (or test) owns its own instance. Entries expire after a TTL, the
map is bounded, and expired entries are swept periodically on write.
"""

from __future__ import annotations

import time
from typing import Callable


class FailedUrlCache:
    """Remembers failing URLs for ``ttl_seconds``.

    Attributes:
        ttl_seconds: How long a failure is remembered
        max_entries: Upper bound on stored URLs; the oldest entry is evicted first
        sweep_interval: Minimum seconds between full sweeps of expired entries
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        max_entries: int = 500,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._failed: dict[str, float] = {}
        self._last_sweep = clock()

    def mark_failed(self, url: str) -> None:
        now = self._clock()
        self._maybe_sweep(now)
        self._failed.pop(url, None)
        while len(self._failed) >= self.max_entries > 0:
            oldest = min(self._failed, key=self._failed.__getitem__)
            del self._failed[oldest]
        self._failed[url] = now

    def is_failed(self, url: str) -> bool:
        failed_at = self._failed.get(url)
        if failed_at is None:
            return False
        if self._clock() - failed_at >= self.ttl_seconds:
            del self._failed[url]
            return False
        return True

    def sweep(self) -> int:
        """Drop expired entries now and return how many were removed."""
        now = self._clock()
        expired = [url for url, failed_at in self._failed.items() if now - failed_at >= self.ttl_seconds]
        for url in expired:
            del self._failed[url]
        self._last_sweep = now
        return len(expired)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self.sweep_interval:
            self.sweep()

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self.is_failed(url)

    def __len__(self) -> int:
        return len(self._failed)
