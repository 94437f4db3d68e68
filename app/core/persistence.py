"""
app/core/persistence.py
Disk snapshot of the whole CacheStore.
  • save_snapshot()    → full rewrite via temp file + rename, never partial
  • restore_snapshot() → all-or-nothing, only if bootstrap is < 24 h old
Neither ever raises: failures are logged and the service carries on.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Optional

from app.core.cache import CacheStore
from app.core.config import SNAPSHOT_MAX_AGE_S

log = logging.getLogger("persistence")


def save_snapshot(store: CacheStore, path: Path) -> bool:
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    try:
        payload = json.dumps(store.to_dict(), indent=2)
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, path)
    except (OSError, TypeError, ValueError) as ex:
        log.error(f"Failed to back up cache to {path}: {ex}")
        return False
    log.info("Cache backed up to disk")
    return True


def restore_snapshot(store: CacheStore, path: Path, now: Optional[float] = None) -> bool:
    """Replace `store` wholesale with the snapshot at `path` if it is fresh enough."""
    path = Path(path)
    if not path.exists():
        log.info("No cache backup found, starting fresh")
        return False

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        snapshot = CacheStore.from_dict(raw)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as ex:
        log.error(f"Failed to load cache from disk: {ex}, starting with empty cache")
        return False

    now = time.time() if now is None else now
    age = now - (snapshot.bootstrap.fetched_at or 0)
    if age >= SNAPSHOT_MAX_AGE_S:
        log.warning("Cache backup too old (>24h), starting fresh")
        return False

    store.replace_with(snapshot)
    log.info("Cache restored from disk")
    for name, entry in (("Bootstrap", store.bootstrap), ("Fixtures", store.fixtures), ("GitHub", store.github)):
        log.info(f"   {name}: {'empty' if entry.empty else 'loaded'}")
    return True
