"""
app/core/freshness.py
Pure refresh decisions, one per source. Each returns (refetch_needed, reason).
Also the live-gameweek TTL and the COMPLETED/LIVE/UPCOMING status read
from the bootstrap schedule.
No I/O and no cache writes. Callers pass the entry and the clock.
"""

import logging
import time
from datetime import datetime
from typing import Optional

import pytz

from app.core.cache import CacheEntry, EraCacheEntry
from app.core.config import (
    BOOTSTRAP, FIXTURES, GITHUB,
    FIXTURES_TTL_S, GW_LIVE_TTL_S, GW_FINISHED_TTL_S, LIVE_TTL_S,
    GW_COMPLETED, GW_LIVE, GW_UPCOMING, GW_UNKNOWN,
    MORNING, EVENING, MORNING_START_HOUR, EVENING_START_HOUR,
)

log = logging.getLogger("freshness")

Decision = tuple[bool, str]


def current_era(now: Optional[float] = None) -> str:
    """Morning: 05:00–17:00 UTC | Evening: 17:00–05:00 UTC."""
    ts = time.time() if now is None else now
    hour = datetime.fromtimestamp(ts, pytz.utc).hour
    return MORNING if MORNING_START_HOUR <= hour < EVENING_START_HOUR else EVENING


def current_event(bootstrap: dict) -> Optional[dict]:
    """The gameweek flagged is_current in a bootstrap payload, or None between gameweeks."""
    return next((e for e in bootstrap["events"] if e.get("is_current")), None)


def should_refresh_bootstrap(entry: CacheEntry, now: Optional[float] = None) -> Decision:
    if entry.empty or entry.fetched_at is None:
        return True, "empty"

    age = entry.age_s(now)
    try:
        event = current_event(entry.data)
        live = event is not None and not event.get("finished")
    except (KeyError, TypeError, AttributeError) as ex:
        log.error(f"Cannot read gameweek status from cached bootstrap: {ex}")
        return True, "unreadable schedule"

    ttl = GW_LIVE_TTL_S if live else GW_FINISHED_TTL_S
    if age > ttl:
        state = "GW live" if live else "GW finished"
        return True, f"stale ({round(age / 60)} min old, {state})"
    return False, "fresh"


def should_refresh_fixtures(entry: CacheEntry, now: Optional[float] = None) -> Decision:
    if entry.empty or entry.fetched_at is None:
        return True, "empty"
    age = entry.age_s(now)
    if age > FIXTURES_TTL_S:
        return True, f"stale ({round(age / 3600)} h old)"
    return False, "fresh"


def should_refresh_github(entry: EraCacheEntry, now: Optional[float] = None) -> Decision:
    if entry.empty or entry.fetched_at is None:
        return True, "empty"
    era = current_era(now)
    if entry.era != era:
        return True, f"era changed: {entry.era} → {era}"
    return False, "fresh"


_POLICIES = {
    BOOTSTRAP: should_refresh_bootstrap,
    FIXTURES:  should_refresh_fixtures,
    GITHUB:    should_refresh_github,
}


def should_refresh(source: str, entry: CacheEntry, now: Optional[float] = None) -> Decision:
    return _POLICIES[source](entry, now)


def should_refresh_live(entry: CacheEntry, now: Optional[float] = None) -> Decision:
    """Live gameweek points: plain 2-minute TTL, one entry per gameweek."""
    if entry.empty or entry.fetched_at is None:
        return True, "empty"
    age = entry.age_s(now)
    if age > LIVE_TTL_S:
        return True, f"stale ({round(age)} s old)"
    return False, "fresh"


def _parse_deadline(raw: str) -> datetime:
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def gameweek_status(bootstrap: Optional[dict], gameweek: int, now: Optional[float] = None) -> str:
    """COMPLETED / LIVE / UPCOMING from the bootstrap schedule, UNKNOWN if it cannot tell."""
    if not bootstrap:
        return GW_UNKNOWN
    try:
        event = next((e for e in bootstrap["events"] if e.get("id") == gameweek), None)
        if event is None:
            return GW_UNKNOWN
        if event.get("finished"):
            return GW_COMPLETED
        deadline = _parse_deadline(event["deadline_time"])
    except (KeyError, TypeError, AttributeError, ValueError) as ex:
        log.error(f"Cannot read GW{gameweek} status from cached bootstrap: {ex}")
        return GW_UNKNOWN

    ts = time.time() if now is None else now
    if deadline.tzinfo is None:
        deadline = pytz.utc.localize(deadline)
    return GW_LIVE if deadline <= datetime.fromtimestamp(ts, pytz.utc) else GW_UPCOMING
