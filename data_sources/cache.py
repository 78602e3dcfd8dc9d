"""
Fetch Cache - Keyed, timestamped store of the last good batch.

Entries are never evicted: an expired entry stays available as the
stale fallback when every source fails. Freshness is measured against
an injected clock so tests can step through TTL windows.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from core.clock import ClockProtocol, get_clock


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Last successful payload for one cache key."""
    key: str
    payload: tuple[Any, ...]
    fetched_at: float  # clock timestamp, seconds
    ttl_seconds: float
    source_name: Optional[str] = None

    def age_seconds(self, now: float) -> float:
        return max(0.0, now - self.fetched_at)

    def is_fresh(self, now: float) -> bool:
        return now - self.fetched_at < self.ttl_seconds

    def to_dict(self, now: float) -> dict[str, Any]:
        return {
            "key": self.key,
            "records": len(self.payload),
            "fetched_at": self.fetched_at,
            "ttl_seconds": self.ttl_seconds,
            "age_seconds": round(self.age_seconds(now), 3),
            "fresh": self.is_fresh(now),
            "source_name": self.source_name,
        }


class FetchCache:
    """
    In-process cache shared by the coordinator and news collector.

    Only successful, validated batches are written; a failed fetch
    never touches an existing entry.
    """

    def __init__(self, clock: Optional[ClockProtocol] = None) -> None:
        self._clock = clock if clock is not None else get_clock()
        self._entries: dict[str, CacheEntry] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "stale_hits": 0,
            "writes": 0,
        }

    @property
    def clock(self) -> ClockProtocol:
        return self._clock

    def now(self) -> float:
        return self._clock.timestamp()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Any entry for key, fresh or stale."""
        return self._entries.get(key)

    def get_fresh(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(self.now()):
            self._stats["hits"] += 1
            return entry
        self._stats["misses"] += 1
        return None

    def get_stale(self, key: str) -> Optional[CacheEntry]:
        """Entry regardless of age, counted as a stale fallback."""
        entry = self._entries.get(key)
        if entry is not None:
            self._stats["stale_hits"] += 1
            logger.info(f"Serving stale cache for '{key}' (age={entry.age_seconds(self.now()):.0f}s)")
        return entry

    def put(
        self,
        key: str,
        payload: Sequence[Any],
        ttl_seconds: float,
        source_name: Optional[str] = None,
    ) -> CacheEntry:
        entry = CacheEntry(
            key=key,
            payload=tuple(payload),
            fetched_at=self.now(),
            ttl_seconds=ttl_seconds,
            source_name=source_name,
        )
        self._entries[key] = entry
        self._stats["writes"] += 1
        return entry

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries)

    def get_stats(self) -> dict[str, Any]:
        now = self.now()
        return {
            **self._stats,
            "entries": {key: entry.to_dict(now) for key, entry in self._entries.items()},
        }

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
