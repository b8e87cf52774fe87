"""In-memory, time-expiring pricing cache."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ptu_estimator.config import SECONDS_PER_HOUR

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    timestamp: float


def is_fresh(entry: Optional[CacheEntry], expiry_seconds: float, now: float) -> bool:
    """An entry is readable iff less than `expiry_seconds` have elapsed."""
    if entry is None:
        return False
    return now - entry.timestamp < expiry_seconds


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class PricingStore:
    """Key -> CacheEntry mapping with an injectable clock.

    Stale entries are never evicted; they read as misses until overwritten.
    Writes replace the whole entry, so readers see either the old or the new
    entry and never a partial one.
    """

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: str, data: Any) -> CacheEntry:
        entry = CacheEntry(data=data, timestamp=self._clock())
        self._entries[key] = entry
        return entry

    def get_fresh(self, key: str, expiry_seconds: float) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if is_fresh(entry, expiry_seconds, self._clock()):
            return entry
        return None

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def status(self, expiry_seconds: float) -> dict[str, Any]:
        """Summarize cache occupancy for diagnostics endpoints."""
        timestamps = [entry.timestamp for entry in self._entries.values()]
        now = self._clock()
        return {
            "cache_size": len(timestamps),
            "fresh_entries": sum(1 for ts in timestamps if now - ts < expiry_seconds),
            "oldest_entry_utc": _iso(min(timestamps)) if timestamps else None,
            "newest_entry_utc": _iso(max(timestamps)) if timestamps else None,
            "cache_expiry_hours": expiry_seconds / SECONDS_PER_HOUR,
        }
