"""In-memory analysis result cache with TTL and a size ceiling."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from .models.analysis import AnalysisResult

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    fingerprint: str
    result: AnalysisResult
    created_at: float


class ResultCache:
    """Fingerprint → ``AnalysisResult`` map shared by all requests.

    Entries older than ``ttl_seconds`` are never served. When an insert
    pushes the entry count over ``max_entries`` the oldest insertion is
    evicted; this is approximate housekeeping, not LRU.

    Reads and writes contain no ``await``, so concurrent coroutines on one
    event loop always see a consistent map.
    """

    def __init__(
        self,
        ttl_seconds: float = 24 * 3600,
        max_entries: int = 1000,
        clock: Clock = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self._ttl

    def get(self, fingerprint: str) -> AnalysisResult | None:
        """Return the cached result, or None on miss/expiry.

        An expired entry is deleted on the way out.
        """
        entry = self._entries.get(fingerprint)
        if entry is None:
            self._misses += 1
            return None
        if self._expired(entry, self._clock()):
            del self._entries[fingerprint]
            self._misses += 1
            logger.debug("Cache expired: %s", fingerprint[:8])
            return None
        self._hits += 1
        logger.info("Cache hit: %s", fingerprint[:8])
        return entry.result.model_copy(deep=True)

    def put(self, fingerprint: str, result: AnalysisResult) -> None:
        """Store *result*, then evict the oldest entry if over capacity."""
        # Re-inserting moves the key to the end so insertion order stays age order.
        self._entries.pop(fingerprint, None)
        self._entries[fingerprint] = CacheEntry(
            fingerprint=fingerprint,
            result=result.model_copy(deep=True),
            created_at=self._clock(),
        )
        logger.info("Cached analysis: %s", fingerprint[:8])
        while len(self._entries) > self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("Evicted oldest cache entry: %s", oldest[:8])

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns count removed."""
        now = self._clock()
        expired = [fp for fp, e in self._entries.items() if self._expired(e, now)]
        for fp in expired:
            del self._entries[fp]
        if expired:
            logger.debug("Purged %d expired cache entr(ies)", len(expired))
        return len(expired)

    def clear(self) -> int:
        """Remove all entries. Returns count removed."""
        removed = len(self._entries)
        self._entries.clear()
        return removed

    def stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "max_entries": self._max_entries,
            "ttl_seconds": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        entry = self._entries.get(fingerprint)  # type: ignore[arg-type]
        return entry is not None and not self._expired(entry, self._clock())
