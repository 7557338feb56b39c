"""In-process cache of query classifications, keyed by normalized query text.

Entries are frozen and swapped in whole under a lock, so a concurrent reader
sees either the previous entry or the new one, never a half-written one.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from craftmatch.domain.entities import CacheEntry, CacheStats, ProfessionMatch

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QueryAnalysisCache:
    """TTL + size-bounded map of normalized query → ProfessionMatch."""

    def __init__(
        self,
        *,
        default_ttl_seconds: int = 3600,
        max_entries: int = 1000,
        now: Callable[[], datetime] = _utcnow,
    ):
        self._default_ttl = default_ttl_seconds
        self._max_entries = max(1, max_entries)
        self._now = now
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> ProfessionMatch | None:
        """Return the cached match for ``key`` or None (missing or expired)."""
        now = self._now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.profession_match

    def put(self, key: str, match: ProfessionMatch, ttl_seconds: int | None = None) -> CacheEntry:
        """Store ``match`` under ``key``, replacing any previous entry."""
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        now = self._now()
        entry = CacheEntry(
            key=key,
            profession_match=match,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl),
        )
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self._max_entries:
                # dicts keep insertion order: the first key is the oldest entry
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                self._evictions += 1
            self._entries[key] = entry
        return entry

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_by_pattern(self, pattern: str) -> int:
        """Drop every entry whose key contains ``pattern``; returns the count."""
        with self._lock:
            doomed = [k for k in self._entries if pattern in k]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.info("Invalidated %d cached analyses matching '%s'", len(doomed), pattern)
        return len(doomed)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
        return count

    def cleanup_expired(self) -> int:
        now = self._now()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Removed %d expired cache entries", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            entries = list(self._entries.values())
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                entry_count=len(entries),
                evictions=self._evictions,
                max_entries=self._max_entries,
                oldest_entry=min((e.created_at for e in entries), default=None),
                newest_entry=max((e.created_at for e in entries), default=None),
            )
