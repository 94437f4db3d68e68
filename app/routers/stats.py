"""
app/routers/stats.py
  GET /api/stats → per-source cache age, hit/miss counters, uptime, memory.
Read-only. Zero external calls.
"""

import time

import psutil
from fastapi import APIRouter, Request

from app.core.freshness import current_era

router = APIRouter(prefix="/api", tags=["meta"])

_MB = 1024 * 1024


def _round_or_none(value, divisor: float):
    return None if value is None else round(value / divisor)


@router.get("/stats")
async def get_stats(request: Request):
    state = request.app.state
    store = state.store
    now = time.time()
    mem = psutil.Process().memory_info()

    bootstrap_age = store.bootstrap.age_ms(now)
    fixtures_age  = store.fixtures.age_ms(now)

    return {
        "uptime": round(now - state.started_at, 1),
        "cache": {
            "bootstrap": {
                "exists":      not store.bootstrap.empty,
                "age_ms":      bootstrap_age,
                "age_minutes": _round_or_none(bootstrap_age, 60 * 1000),
            },
            "fixtures": {
                "exists":    not store.fixtures.empty,
                "age_ms":    fixtures_age,
                "age_hours": _round_or_none(fixtures_age, 60 * 60 * 1000),
            },
            "github": {
                "exists":      not store.github.empty,
                "age_ms":      store.github.age_ms(now),
                "era":         store.github.era,
                "current_era": current_era(now),
            },
        },
        "stats": store.stats.to_dict(),
        "memory": {
            "rss_mb": round(mem.rss / _MB),
            "vms_mb": round(mem.vms / _MB),
        },
    }
