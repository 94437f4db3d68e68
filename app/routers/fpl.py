"""
app/routers/fpl.py
Endpoints:
  GET /api/fpl-data               → bootstrap + fixtures + github + meta
  GET /api/fpl-data?refresh=true  → same, refetching all three sources
  GET /api/team/{team_id}         → one manager's team + current GW picks
  GET /api/live/{gameweek}        → live points for one gameweek (1..38)

Failures surface through the app's exception handlers (see app.main):
  SourceUnavailable / UserDataUnavailable / LiveDataUnavailable → 500
  InvalidTeamId / InvalidGameweek → 400
"""

import logging
import time

from fastapi import APIRouter, Query, Request

from app.core.config import is_valid_gameweek, is_valid_team_id
from app.core.errors import InvalidGameweek, InvalidTeamId
from app.core.orchestrator import combined_read, live_read, team_read

router = APIRouter(prefix="/api", tags=["fpl"])
log = logging.getLogger("routes.fpl")


@router.get("/fpl-data")
async def get_fpl_data(request: Request, refresh: str = Query("false")):
    state = request.app.state
    force = refresh.lower() == "true"
    t0 = time.time()
    log.info(f"GET /api/fpl-data{' (FORCE REFRESH)' if force else ''}")

    payload = await combined_read(
        state.store,
        force_refresh=force,
        fpl=state.fpl_client,
        github=state.github_client,
    )
    log.info(f"Response ready ({(time.time() - t0) * 1000:.0f}ms)")
    return payload


@router.get("/team/{team_id}")
async def get_team(request: Request, team_id: str):
    if not is_valid_team_id(team_id):
        raise InvalidTeamId(team_id)
    state = request.app.state
    log.info(f"GET /api/team/{team_id}")
    return await team_read(state.store, int(team_id), fpl=state.fpl_client)


@router.get("/live/{gameweek}")
async def get_live(request: Request, gameweek: str):
    if not is_valid_gameweek(gameweek):
        raise InvalidGameweek(gameweek)
    state = request.app.state
    log.info(f"GET /api/live/{gameweek}")
    return await live_read(state.store, int(gameweek), fpl=state.fpl_client)
