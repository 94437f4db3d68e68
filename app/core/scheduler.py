"""
app/core/scheduler.py
═══════════════════════════════════════════════════════════════════════════════
Snapshot ticker.

  • Writes the full cache to disk every SNAPSHOT_INTERVAL_S (5 min)
  • Runs beside the request path; a tick may land mid-fetch and capture
    either the before or after state, both are complete
  • A failed write is logged and the loop keeps going
  • Cancelled by the app lifespan on shutdown, which then writes one final
    snapshot itself (see app.main)
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
from pathlib import Path

from app.core.cache import CacheStore
from app.core.config import SNAPSHOT_INTERVAL_S
from app.core.persistence import save_snapshot

log = logging.getLogger("scheduler")


async def run_snapshot_scheduler(
    store: CacheStore,
    path: Path,
    interval: float = SNAPSHOT_INTERVAL_S,
) -> None:
    """Runs until cancelled."""
    log.info(f"Snapshot scheduler started (every {interval:.0f}s → {path})")
    try:
        while True:
            await asyncio.sleep(interval)
            try:
                await asyncio.to_thread(save_snapshot, store, path)
            except Exception as ex:
                log.error(f"Snapshot tick error (continuing): {ex}")
    except asyncio.CancelledError:
        log.info("Snapshot scheduler stopped")
        raise
