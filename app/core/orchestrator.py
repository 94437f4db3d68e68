"""
app/core/orchestrator.py
═══════════════════════════════════════════════════════════════════════════════
Request-path orchestration.

combined_read():
  1. Ask the freshness policy about each source (or force all three)
  2. Nothing due  → cache hit, answer straight from the store
  3. Something due → cache miss, fetch every due source concurrently and wait
     for all of them to settle
  4. Build the response from the store plus ages / era metadata

Concurrent requests are not coalesced: two requests that both see a stale
source each fetch it, and the store keeps whichever write lands last.

team_read():
  Refresh bootstrap if due (it carries the current gameweek), then fetch the
  team record and that gameweek's picks together. Team data is never cached.
  A bootstrap outage with nothing cached is reported as a team-data failure.

live_read():
  Live points for one gameweek, cached per gameweek for 2 minutes, plus the
  gameweek's status read from whatever bootstrap is already cached.
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Optional

import httpx
import pytz

from app.core.cache import CacheStore
from app.core.config import BOOTSTRAP, FIXTURES, GITHUB, SOURCES
from app.core.errors import SourceUnavailable, UserDataUnavailable
from app.core.freshness import (
    current_era, current_event, gameweek_status, should_refresh, should_refresh_live,
)
from app.scrapers.fpl import fetch_bootstrap, fetch_fixtures, fetch_live, fetch_team, fetch_picks
from app.scrapers.github import fetch_github_csv

log = logging.getLogger("orchestrator")


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, pytz.utc).isoformat().replace("+00:00", "Z")


async def combined_read(
    store: CacheStore,
    force_refresh: bool = False,
    fpl: Optional[httpx.AsyncClient] = None,
    github: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.time,
) -> dict:
    """Combined bootstrap + fixtures + github payload. Raises SourceUnavailable."""
    now = clock()
    due = []
    for source in SOURCES:
        if force_refresh:
            due.append(source)
            continue
        needed, reason = should_refresh(source, store.entry(source), now)
        if needed:
            log.info(f"{source} needs fetch ({reason})")
            due.append(source)
        else:
            log.info(f"{source} cache valid, using cached data")

    if not due:
        store.record_hit()
        log.info("Full cache hit, returning immediately")
    else:
        store.record_miss()
        fetchers = {
            BOOTSTRAP: lambda: fetch_bootstrap(store, fpl, clock),
            FIXTURES:  lambda: fetch_fixtures(store, fpl, clock),
            GITHUB:    lambda: fetch_github_csv(store, github, clock),
        }
        # every fetch settles before the first failure is re-raised
        results = await asyncio.gather(*(fetchers[s]() for s in due), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        store.stats.last_fetch_at = _iso(clock())

    now = clock()
    log.info(f"Cache hits: {store.stats.cache_hits}, misses: {store.stats.cache_misses}")
    return {
        BOOTSTRAP: store.bootstrap.data,
        FIXTURES:  store.fixtures.data,
        GITHUB:    store.github.data,
        "meta": {
            "cached":        not due,
            "bootstrap_age": store.bootstrap.age_ms(now),
            "fixtures_age":  store.fixtures.age_ms(now),
            "github_age":    store.github.age_ms(now),
            "github_era":    store.github.era,
            "current_era":   current_era(now),
            "timestamp":     _iso(now),
        },
    }


def active_gameweek(bootstrap) -> int:
    """Id of the is_current gameweek; 1 before the season starts or if unreadable."""
    try:
        event = current_event(bootstrap)
    except (KeyError, TypeError, AttributeError):
        return 1
    return event["id"] if event else 1


async def team_read(
    store: CacheStore,
    team_id: int,
    fpl: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.time,
) -> dict:
    """Team + current picks. Raises UserDataUnavailable."""
    needed, _ = should_refresh(BOOTSTRAP, store.bootstrap, clock())
    if needed:
        try:
            await fetch_bootstrap(store, fpl, clock)
        except SourceUnavailable as ex:
            raise UserDataUnavailable(team_id, "Current gameweek") from ex

    gameweek = active_gameweek(store.bootstrap.data)
    log.info(f"Current GW: {gameweek}")

    team, picks = await asyncio.gather(
        fetch_team(team_id, fpl),
        fetch_picks(team_id, gameweek, fpl),
        return_exceptions=True,
    )
    for result in (team, picks):
        if isinstance(result, BaseException):
            raise result
    return {
        "team":      team,
        "picks":     picks,
        "gameweek":  gameweek,
        "timestamp": _iso(clock()),
    }


async def live_read(
    store: CacheStore,
    gameweek: int,
    fpl: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.time,
) -> dict:
    """Live points for one gameweek. Raises LiveDataUnavailable."""
    needed, reason = should_refresh_live(store.live_entry(gameweek), clock())
    if needed:
        log.info(f"GW{gameweek} live needs fetch ({reason})")
        data = await fetch_live(store, gameweek, fpl, clock)
    else:
        log.info(f"GW{gameweek} live cache valid, using cached data")
        data = store.live_entry(gameweek).data

    now = clock()
    age = store.live_entry(gameweek).age_s(now)
    return {
        "gameweek":  gameweek,
        "status":    gameweek_status(store.bootstrap.data, gameweek, now),
        "elements":  data["elements"],
        "cached":    not needed,
        "cache_age": None if age is None else round(age),
        "timestamp": _iso(now),
    }
