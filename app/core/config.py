"""
app/core/config.py  ── FPLanner API
═══════════════════════════════════════════════════════════════════════════════
SOURCE ASSIGNMENT:

  fantasy.premierleague.com  →  bootstrap-static (players, teams, gameweeks)
                                 fixtures
                                 entry/{id} + entry/{id}/event/{gw}/picks
                                 event/{gw}/live (cached per gameweek, 2 min)
                                 (team lookups are live, never cached)

  raw.githubusercontent.com  →  merged gameweek CSV (per-player history)

Refresh rules:
  bootstrap  →  30 min while a gameweek is live, 12 h otherwise
  fixtures   →  12 h
  github     →  once per era (morning 05–17 UTC / evening 17–05 UTC)
  live GW    →  2 min per gameweek
═══════════════════════════════════════════════════════════════════════════════
"""

import os
from pathlib import Path
from typing import Optional

# ── Server ────────────────────────────────────────────────────────────────────
PORT = int(os.environ.get("PORT", "3001"))
HOST = "0.0.0.0"

_ROOT = Path(__file__).resolve().parents[2]
CACHE_BACKUP_PATH = Path(os.environ.get("CACHE_BACKUP_PATH", _ROOT / "cache-backup.json"))

# ── Upstreams ─────────────────────────────────────────────────────────────────
FPL_BASE_URL   = "https://fantasy.premierleague.com/api"
GITHUB_CSV_URL = (
    "https://raw.githubusercontent.com/vaastav/Fantasy-Premier-League/"
    "master/data/2024-25/gws/merged_gw.csv"
)
HEADERS = {"User-Agent": "FPLanner/1.0"}

FPL_TIMEOUT_S    = 10.0
GITHUB_TIMEOUT_S = 15.0     # CSV is larger and parsed after download

# ── Sources ───────────────────────────────────────────────────────────────────
BOOTSTRAP = "bootstrap"
FIXTURES  = "fixtures"
GITHUB    = "github"
SOURCES   = (BOOTSTRAP, FIXTURES, GITHUB)

# ── TTLs (seconds) ────────────────────────────────────────────────────────────
FIXTURES_TTL_S    = 12 * 60 * 60
GW_LIVE_TTL_S     = 30 * 60
GW_FINISHED_TTL_S = 12 * 60 * 60
LIVE_TTL_S        = 2 * 60     # per-gameweek live points

# ── Gameweek status (live endpoint) ───────────────────────────────────────────
GW_COMPLETED = "COMPLETED"
GW_LIVE      = "LIVE"
GW_UPCOMING  = "UPCOMING"
GW_UNKNOWN   = "UNKNOWN"

# ── Eras ──────────────────────────────────────────────────────────────────────
MORNING = "morning"
EVENING = "evening"
MORNING_START_HOUR = 5
EVENING_START_HOUR = 17

# ── Persistence ───────────────────────────────────────────────────────────────
SNAPSHOT_INTERVAL_S = 5 * 60
SNAPSHOT_MAX_AGE_S  = 24 * 60 * 60

# ── Validation ────────────────────────────────────────────────────────────────
MAX_TEAM_ID  = 10_000_000
MIN_GAMEWEEK = 1
MAX_GAMEWEEK = 38


def _parse_id(raw) -> Optional[int]:
    # plain ASCII digits only: "+42", "4_2" and "42.0" are rejected
    text = str(raw).strip()
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


def is_valid_team_id(team_id) -> bool:
    value = _parse_id(team_id)
    return value is not None and 0 < value < MAX_TEAM_ID


def is_valid_gameweek(gameweek) -> bool:
    value = _parse_id(gameweek)
    return value is not None and MIN_GAMEWEEK <= value <= MAX_GAMEWEEK
