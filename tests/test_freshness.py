import pytest

from app.core.cache import CacheEntry, EraCacheEntry
from app.core.config import EVENING, MORNING
from app.core.freshness import (
    current_era,
    gameweek_status,
    should_refresh,
    should_refresh_bootstrap,
    should_refresh_fixtures,
    should_refresh_github,
    should_refresh_live,
)
from conftest import FINISHED_BOOTSTRAP, LIVE_BOOTSTRAP, utc_ts

NOW = utc_ts(2025, 10, 18, 12, 0)
MIN = 60
HOUR = 60 * MIN


@pytest.mark.parametrize("hour, era", [
    (0, EVENING), (4, EVENING), (5, MORNING), (12, MORNING), (16, MORNING), (17, EVENING), (23, EVENING),
])
def test_current_era_boundaries(hour, era):
    assert current_era(utc_ts(2025, 10, 18, hour, 30)) == era


def test_empty_entries_always_refresh():
    assert should_refresh_bootstrap(CacheEntry(), NOW) == (True, "empty")
    assert should_refresh_fixtures(CacheEntry(), NOW) == (True, "empty")
    assert should_refresh_github(EraCacheEntry(), NOW) == (True, "empty")


def test_fixtures_ttl():
    assert should_refresh_fixtures(CacheEntry([], NOW - (11 * HOUR + 59 * MIN)), NOW)[0] is False
    assert should_refresh_fixtures(CacheEntry([], NOW - (12 * HOUR + 1 * MIN)), NOW)[0] is True


def test_bootstrap_live_gameweek_uses_short_ttl():
    assert should_refresh_bootstrap(CacheEntry(LIVE_BOOTSTRAP, NOW - 29 * MIN), NOW)[0] is False
    needed, reason = should_refresh_bootstrap(CacheEntry(LIVE_BOOTSTRAP, NOW - 31 * MIN), NOW)
    assert needed is True
    assert "GW live" in reason


@pytest.mark.parametrize("payload", [
    FINISHED_BOOTSTRAP,
    {"events": [{"id": 1, "is_current": False, "finished": False}]},
])
def test_bootstrap_finished_or_between_gameweeks_uses_long_ttl(payload):
    assert should_refresh_bootstrap(CacheEntry(payload, NOW - (11 * HOUR + 59 * MIN)), NOW)[0] is False
    assert should_refresh_bootstrap(CacheEntry(payload, NOW - (12 * HOUR + 1 * MIN)), NOW)[0] is True


@pytest.mark.parametrize("payload", [{"elements": []}, [1, 2, 3], {"events": ["x"]}])
def test_bootstrap_unreadable_schedule_refreshes(payload):
    needed, reason = should_refresh_bootstrap(CacheEntry(payload, NOW - 1), NOW)
    assert needed is True
    assert reason == "unreadable schedule"


def test_github_morning_entry_only_refreshes_outside_morning():
    entry = EraCacheEntry(data=[{}], fetched_at=utc_ts(2025, 10, 18, 6, 0), era=MORNING)
    for hour in range(5, 17):
        assert should_refresh_github(entry, utc_ts(2025, 10, 18, hour, 59))[0] is False
    for hour in list(range(17, 24)) + list(range(0, 5)):
        day = 18 if hour >= 17 else 19
        assert should_refresh_github(entry, utc_ts(2025, 10, day, hour, 0))[0] is True


def test_github_ignores_age_within_same_era():
    # fetched at 17:00, still evening at 04:59 the next morning
    entry = EraCacheEntry(data=[{}], fetched_at=utc_ts(2025, 10, 18, 17, 0), era=EVENING)
    assert should_refresh_github(entry, utc_ts(2025, 10, 19, 4, 59))[0] is False


def test_dispatch_by_source_name():
    entry = CacheEntry([], NOW - 13 * HOUR)
    assert should_refresh("fixtures", entry, NOW)[0] is True
    with pytest.raises(KeyError):
        should_refresh("unknown", entry, NOW)


def test_live_points_two_minute_ttl():
    assert should_refresh_live(CacheEntry(), NOW) == (True, "empty")
    assert should_refresh_live(CacheEntry(data={}, fetched_at=NOW - 2 * MIN), NOW) == (False, "fresh")
    assert should_refresh_live(CacheEntry(data={}, fetched_at=NOW - 2 * MIN - 1), NOW)[0] is True


@pytest.mark.parametrize("gameweek, status", [
    (6, "COMPLETED"),
    (7, "LIVE"),
    (8, "UPCOMING"),
    (9, "UNKNOWN"),
])
def test_gameweek_status_from_schedule(gameweek, status):
    assert gameweek_status(LIVE_BOOTSTRAP, gameweek, NOW) == status


def test_gameweek_status_deadline_is_inclusive():
    deadline = utc_ts(2025, 10, 24, 17, 30)
    assert gameweek_status(LIVE_BOOTSTRAP, 8, deadline) == "LIVE"
    assert gameweek_status(LIVE_BOOTSTRAP, 8, deadline - 1) == "UPCOMING"


@pytest.mark.parametrize("payload", [None, {}, {"events": "nope"}, {"events": [{"id": 7}]}])
def test_gameweek_status_unknown_without_schedule(payload):
    assert gameweek_status(payload, 7, NOW) == "UNKNOWN"
