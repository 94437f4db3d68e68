"""
app/scrapers/fpl.py
═══════════════════════════════════════════════════════════════════════════════
Fetchers for the official Fantasy Premier League API.

  bootstrap-static/   → players, teams, gameweeks   (cached as "bootstrap")
  fixtures/           → every fixture of the season (cached as "fixtures")
  entry/{id}/         → one manager's team          (live, never cached)
  entry/{id}/event/{gw}/picks/ → that team's picks  (live, never cached)
  event/{gw}/live/   → live points per player     (cached per gameweek, 2 min)

Cached sources follow the stale-fallback rule: a failed fetch returns the
previous payload untouched if there is one, otherwise raises SourceUnavailable.
═══════════════════════════════════════════════════════════════════════════════
"""

import json
import logging
import time
from typing import Any, Callable, Optional

import httpx

from app.core.cache import CacheStore
from app.core.config import BOOTSTRAP, FIXTURES, FPL_BASE_URL, FPL_TIMEOUT_S
from app.core.errors import (
    LiveDataUnavailable, SourceUnavailable, TransientUpstreamError, UserDataUnavailable,
)
from app.core.http_client import fpl_client, get_upstream

log = logging.getLogger("fpl")

Clock = Callable[[], float]


def stale_or_raise(store: CacheStore, source: str, ex: TransientUpstreamError) -> Any:
    """Stale fallback: previous payload if one exists, else SourceUnavailable."""
    log.error(f"Failed to fetch {source}: {ex.reason}")
    entry = store.entry(source)
    if not entry.empty:
        log.warning(f"Using stale {source} cache as fallback")
        return entry.data
    raise SourceUnavailable(source) from ex


def _json_body(resp: httpx.Response, source: str) -> Any:
    try:
        return resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as ex:
        raise TransientUpstreamError(source, f"unparseable body: {ex}")


async def _fetch_cached_json(
    store: CacheStore,
    source: str,
    path: str,
    client: Optional[httpx.AsyncClient],
    clock: Clock,
) -> Any:
    log.info(f"Fetching FPL {source}...")
    client = client or fpl_client()
    try:
        resp = await get_upstream(client, f"{FPL_BASE_URL}/{path}", source, FPL_TIMEOUT_S)
        data = _json_body(resp, source)
    except TransientUpstreamError as ex:
        return stale_or_raise(store, source, ex)

    log.info(f"{source} fetched ({round(len(resp.content) / 1024)}KB)")
    store.write(source, data, fetched_at=clock())
    return data


async def fetch_bootstrap(
    store: CacheStore,
    client: Optional[httpx.AsyncClient] = None,
    clock: Clock = time.time,
) -> Any:
    return await _fetch_cached_json(store, BOOTSTRAP, "bootstrap-static/", client, clock)


async def fetch_fixtures(
    store: CacheStore,
    client: Optional[httpx.AsyncClient] = None,
    clock: Clock = time.time,
) -> Any:
    return await _fetch_cached_json(store, FIXTURES, "fixtures/", client, clock)


# ── Live team lookups (no cache, no fallback) ────────────────────────────────

async def _fetch_live_json(client: Optional[httpx.AsyncClient], path: str, team_id, what: str) -> Any:
    client = client or fpl_client()
    try:
        resp = await get_upstream(client, f"{FPL_BASE_URL}/{path}", what, FPL_TIMEOUT_S)
        return _json_body(resp, what)
    except TransientUpstreamError as ex:
        log.error(f"Failed to fetch {what} for team {team_id}: {ex.reason}")
        raise UserDataUnavailable(team_id, what) from ex


async def fetch_team(team_id, client: Optional[httpx.AsyncClient] = None) -> Any:
    log.info(f"Fetching team {team_id}...")
    return await _fetch_live_json(client, f"entry/{team_id}/", team_id, "Team data")


async def fetch_picks(team_id, gameweek: int, client: Optional[httpx.AsyncClient] = None) -> Any:
    log.info(f"Fetching picks for team {team_id}, GW{gameweek}...")
    return await _fetch_live_json(
        client, f"entry/{team_id}/event/{gameweek}/picks/", team_id, f"GW{gameweek} picks"
    )


# ── Live gameweek points (cached per gameweek) ───────────────────────────────

async def fetch_live(
    store: CacheStore,
    gameweek: int,
    client: Optional[httpx.AsyncClient] = None,
    clock: Clock = time.time,
) -> Any:
    """event/{gw}/live/ payload. Falls back to this gameweek's previous payload, else LiveDataUnavailable."""
    log.info(f"Fetching live data for GW{gameweek}...")
    client = client or fpl_client()
    source = f"GW{gameweek} live"
    try:
        resp = await get_upstream(client, f"{FPL_BASE_URL}/event/{gameweek}/live/", source, FPL_TIMEOUT_S)
        data = _json_body(resp, source)
        if not isinstance(data, dict) or not isinstance(data.get("elements"), list):
            raise TransientUpstreamError(source, "payload has no elements list")
    except TransientUpstreamError as ex:
        log.error(f"Failed to fetch {source}: {ex.reason}")
        entry = store.live_entry(gameweek)
        if not entry.empty:
            log.warning(f"Using stale {source} cache as fallback")
            return entry.data
        raise LiveDataUnavailable(gameweek) from ex

    store.write_live(gameweek, data, fetched_at=clock())
    return data
