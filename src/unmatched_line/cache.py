"""In-memory response cache keyed by request URL.

Entries live for a fixed TTL and are checked on read; an expired entry
is dropped and never served. The cache is built once per process and
handed to every store, so tests can inject a fake clock instead of
waiting on wall-clock time.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 10 * 60


class CacheEntry(BaseModel):
    """A cached payload and the clock reading when it was stored."""

    data: Any
    timestamp: float


class CacheStats(BaseModel):
    total: int
    active: int
    expired: int
    max_size: int | None = None


class ResponseCache:
    """TTL map from request URL to payload.

    Args:
        ttl_seconds: Lifetime of an entry.
        clock: Monotonic time source in seconds.
        max_size: Optional cap; the oldest entry is evicted when exceeded.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_size: int | None = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp < self.ttl_seconds

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss: %s", key)
            return None
        if not self._is_fresh(entry, self._clock()):
            logger.debug("Cache expired: %s", key)
            del self._entries[key]
            return None
        logger.debug("Cache hit: %s", key)
        return entry

    def put(self, key: str, data: Any) -> None:
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())
        if self.max_size is not None and len(self._entries) > self.max_size:
            oldest, _ = self._entries.popitem(last=False)
            logger.debug("Cache full, evicted %s", oldest)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        if self._entries:
            logger.debug("Clearing %d cache entries", len(self._entries))
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        stale = [k for k, e in self._entries.items() if not self._is_fresh(e, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def stats(self) -> CacheStats:
        now = self._clock()
        active = sum(1 for e in self._entries.values() if self._is_fresh(e, now))
        return CacheStats(
            total=len(self._entries),
            active=active,
            expired=len(self._entries) - active,
            max_size=self.max_size,
        )

    def __len__(self) -> int:
        return len(self._entries)
