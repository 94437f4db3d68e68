"""
app/core/cache.py
═══════════════════════════════════════════════════════════════════════════
In-memory cache for the three upstream sources.
  • One CacheStore per process, owned by the app and passed explicitly
  • Only fetchers call CacheStore.write() → data + timestamp replaced together
  • Failed fetches never call write() → stale data stays valid
  • Counters live on the store so a fresh store means fresh counters
  • Live gameweek points are kept per gameweek in `live`, outside the counters
═══════════════════════════════════════════════════════════════════════════
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from app.core.config import BOOTSTRAP, FIXTURES, GITHUB, SOURCES


def _check_pair(raw: dict) -> None:
    # data and fetched_at are either both set or both null
    if (raw["data"] is None) != (raw["fetched_at"] is None):
        raise ValueError("snapshot entry has data without a timestamp (or vice versa)")


@dataclass
class CacheEntry:
    data: Any = None
    fetched_at: Optional[float] = None     # epoch seconds of the last successful fetch

    @property
    def empty(self) -> bool:
        return self.data is None

    def age_s(self, now: Optional[float] = None) -> Optional[float]:
        if self.fetched_at is None:
            return None
        return (time.time() if now is None else now) - self.fetched_at

    def age_ms(self, now: Optional[float] = None) -> Optional[int]:
        age = self.age_s(now)
        return None if age is None else int(round(age * 1000))

    def to_dict(self) -> dict:
        return {"data": self.data, "fetched_at": self.fetched_at}

    @classmethod
    def from_dict(cls, raw: dict) -> "CacheEntry":
        _check_pair(raw)
        return cls(data=raw["data"], fetched_at=raw["fetched_at"])


@dataclass
class EraCacheEntry(CacheEntry):
    """Entry for the CSV feed: also remembers which era it was fetched in."""
    era: Optional[str] = None

    def to_dict(self) -> dict:
        return {**super().to_dict(), "era": self.era}

    @classmethod
    def from_dict(cls, raw: dict) -> "EraCacheEntry":
        _check_pair(raw)
        return cls(data=raw["data"], fetched_at=raw["fetched_at"], era=raw.get("era"))


@dataclass
class CacheStats:
    total_fetches: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    last_fetch_at: Optional[str] = None    # ISO-8601 UTC

    def to_dict(self) -> dict:
        return {
            "total_fetches": self.total_fetches,
            "cache_hits":    self.cache_hits,
            "cache_misses":  self.cache_misses,
            "last_fetch_at": self.last_fetch_at,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "CacheStats":
        return cls(
            total_fetches=int(raw.get("total_fetches", 0)),
            cache_hits=int(raw.get("cache_hits", 0)),
            cache_misses=int(raw.get("cache_misses", 0)),
            last_fetch_at=raw.get("last_fetch_at"),
        )


@dataclass
class CacheStore:
    bootstrap: CacheEntry    = field(default_factory=CacheEntry)
    fixtures:  CacheEntry    = field(default_factory=CacheEntry)
    github:    EraCacheEntry = field(default_factory=EraCacheEntry)
    stats:     CacheStats    = field(default_factory=CacheStats)
    live: dict[int, CacheEntry] = field(default_factory=dict)
    _lock: threading.Lock    = field(default_factory=threading.Lock, repr=False, compare=False)

    def entry(self, source: str) -> CacheEntry:
        if source not in SOURCES:
            raise KeyError(f"Unknown source '{source}'")
        return getattr(self, source)

    def write(self, source: str, data: Any, fetched_at: float, era: Optional[str] = None) -> None:
        """Replace one source's entry after a successful fetch. Called by fetchers only."""
        with self._lock:
            if source == GITHUB:
                self.github = EraCacheEntry(data=data, fetched_at=fetched_at, era=era)
            else:
                setattr(self, source, CacheEntry(data=data, fetched_at=fetched_at))
            self.stats.total_fetches += 1

    def live_entry(self, gameweek: int) -> CacheEntry:
        return self.live.get(gameweek) or CacheEntry()

    def write_live(self, gameweek: int, data: Any, fetched_at: float) -> None:
        """Replace one gameweek's live points. Does not count towards total_fetches."""
        with self._lock:
            self.live[gameweek] = CacheEntry(data=data, fetched_at=fetched_at)

    def record_hit(self) -> None:
        with self._lock:
            self.stats.cache_hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self.stats.cache_misses += 1

    def replace_with(self, other: "CacheStore") -> None:
        """Swap in every entry and counter from `other` at once."""
        with self._lock:
            self.bootstrap = other.bootstrap
            self.fixtures  = other.fixtures
            self.github    = other.github
            self.stats     = other.stats
            self.live      = other.live

    def to_dict(self) -> dict:
        with self._lock:
            return {
                BOOTSTRAP: self.bootstrap.to_dict(),
                FIXTURES:  self.fixtures.to_dict(),
                GITHUB:    self.github.to_dict(),
                "stats":   self.stats.to_dict(),
                "live":    {str(gw): e.to_dict() for gw, e in self.live.items()},
            }

    @classmethod
    def from_dict(cls, raw: dict) -> "CacheStore":
        """Build a store from a snapshot dict. Raises KeyError/TypeError on a malformed snapshot."""
        return cls(
            bootstrap=CacheEntry.from_dict(raw[BOOTSTRAP]),
            fixtures=CacheEntry.from_dict(raw[FIXTURES]),
            github=EraCacheEntry.from_dict(raw[GITHUB]),
            stats=CacheStats.from_dict(raw.get("stats") or {}),
            live={int(gw): CacheEntry.from_dict(e) for gw, e in (raw.get("live") or {}).items()},
        )
