"""
app/main.py  — FPLanner API
Startup: restores the disk snapshot, launches the snapshot scheduler.
Shutdown: stops the scheduler, writes one final snapshot, closes clients.
Reads are cache-first; upstreams are only hit when a source is due.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

import httpx
import pytz
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.cache import CacheStore
from app.core.config import CACHE_BACKUP_PATH, HOST, PORT, SNAPSHOT_INTERVAL_S
from app.core.errors import (
    InvalidGameweek, InvalidTeamId, LiveDataUnavailable, SourceUnavailable, UserDataUnavailable,
)
from app.core.http_client import close_all
from app.core.persistence import restore_snapshot, save_snapshot
from app.core.scheduler import run_snapshot_scheduler
from app.routers import fpl, stats

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("main")


def create_app(
    store: Optional[CacheStore] = None,
    backup_path: Path = CACHE_BACKUP_PATH,
    fpl_client: Optional[httpx.AsyncClient] = None,
    github_client: Optional[httpx.AsyncClient] = None,
    snapshot_interval: float = SNAPSHOT_INTERVAL_S,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("🚀 FPLanner API starting...")
        restore_snapshot(app.state.store, backup_path)
        ticker = asyncio.create_task(run_snapshot_scheduler(app.state.store, backup_path, snapshot_interval))
        yield
        log.info("🛑 Shutting down, saving cache...")
        ticker.cancel()
        try:
            await ticker
        except asyncio.CancelledError:
            pass
        save_snapshot(app.state.store, backup_path)
        await close_all()
        for c in (fpl_client, github_client):
            if c and not c.is_closed:
                await c.aclose()

    app = FastAPI(
        title="FPLanner API",
        description=(
            "Cache-first backend for the FPLanner dashboard. "
            "Sources: FPL bootstrap-static (30 min live GW / 12 h otherwise), "
            "FPL fixtures (12 h), GitHub gameweek CSV (twice daily, 05:00/17:00 UTC)."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else CacheStore()
    app.state.fpl_client = fpl_client
    app.state.github_client = github_client
    app.state.started_at = time.time()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        log.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    # ── Error mapping ────────────────────────────────────────────────────────
    @app.exception_handler(SourceUnavailable)
    async def source_unavailable(request: Request, ex: SourceUnavailable):
        log.error(f"Error in {request.url.path}: {ex}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch FPL data", "message": str(ex)})

    @app.exception_handler(UserDataUnavailable)
    async def user_data_unavailable(request: Request, ex: UserDataUnavailable):
        log.error(f"Error fetching team {ex.team_id}: {ex}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch team data", "message": str(ex)})

    @app.exception_handler(LiveDataUnavailable)
    async def live_data_unavailable(request: Request, ex: LiveDataUnavailable):
        log.error(f"Error fetching live GW{ex.gameweek}: {ex}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch live data", "message": str(ex)})

    @app.exception_handler(InvalidTeamId)
    async def invalid_team_id(request: Request, ex: InvalidTeamId):
        return JSONResponse(status_code=400, content={"error": "Invalid team id", "message": str(ex)})

    @app.exception_handler(InvalidGameweek)
    async def invalid_gameweek(request: Request, ex: InvalidGameweek):
        return JSONResponse(status_code=400, content={"error": "Invalid gameweek", "message": str(ex)})

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(fpl.router)
    app.include_router(stats.router)

    @app.get("/", tags=["meta"])
    async def root():
        return {
            "status":  "online",
            "version": "1.0.0",
            "endpoints": {
                "combined":      "/api/fpl-data",
                "force_refresh": "/api/fpl-data?refresh=true",
                "team":          "/api/team/{team_id}",
                "live":          "/api/live/{gameweek}",
                "stats":         "/api/stats",
                "health":        "/health",
                "docs":          "/docs",
            },
        }

    @app.get("/health", tags=["meta"])
    async def health():
        return {
            "status":    "healthy",
            "timestamp": datetime.now(pytz.utc).isoformat().replace("+00:00", "Z"),
        }

    return app


app = create_app()


def run() -> None:
    """uvicorn handles SIGINT/SIGTERM: lifespan shutdown saves the cache, then exit 0."""
    log.info(f"📡 Listening on host {HOST} and port {PORT}")
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    run()
