"""Domain entity for a cached query analysis."""

from dataclasses import dataclass
from datetime import datetime

from .profession import ProfessionMatch


@dataclass(frozen=True)
class CacheEntry:
    """A classified query, keyed by its normalized text.

    Never mutated in place: a re-classification replaces the whole entry.
    """

    key: str
    profession_match: ProfessionMatch
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache counters."""

    hits: int = 0
    misses: int = 0
    entry_count: int = 0
    evictions: int = 0
    max_entries: int = 0
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
