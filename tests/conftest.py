"""Shared fakes: a scriptable upstream behind httpx.MockTransport and a fixed clock."""

import asyncio
from datetime import datetime
from urllib.parse import urlparse

import httpx
import pytest
import pytz

from app.core.cache import CacheStore
from app.core.config import GITHUB_CSV_URL

BOOTSTRAP_PATH = "/api/bootstrap-static/"
FIXTURES_PATH  = "/api/fixtures/"
GITHUB_PATH    = urlparse(GITHUB_CSV_URL).path

LIVE_BOOTSTRAP = {
    "events": [
        {"id": 6, "is_current": False, "finished": True,  "deadline_time": "2025-10-03T17:30:00Z"},
        {"id": 7, "is_current": True,  "finished": False, "deadline_time": "2025-10-17T17:30:00Z"},
        {"id": 8, "is_current": False, "finished": False, "deadline_time": "2025-10-24T17:30:00Z"},
    ],
    "elements": [{"id": 1, "web_name": "Salah"}],
    "teams": [{"id": 1, "name": "Liverpool"}],
}
FINISHED_BOOTSTRAP = {
    "events": [{"id": 7, "is_current": True, "finished": True}],
    "elements": [],
    "teams": [],
}
LIVE_POINTS = {"elements": [{"id": 1, "stats": {"minutes": 90, "total_points": 14}}]}
FIXTURES = [{"id": 1, "event": 7, "team_h": 1, "team_a": 2, "finished": False}]
CSV_TEXT = (
    "name,position,team,total_points,minutes,was_home,GW\n"
    "Mohamed Salah,MID,Liverpool,14,90,True,1\n"
    "Erling Haaland,FWD,Man City,2,,False,1\n"
)


def live_path(gameweek: int) -> str:
    return f"/api/event/{gameweek}/live/"


def utc_ts(*args) -> float:
    return datetime(*args, tzinfo=pytz.utc).timestamp()


class FixedClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """
    Maps URL path → response. A route value may be:
      • a callable(request) returning an httpx.Response or an exception
      • an exception instance (raised as a transport error)
    Every request path is appended to `calls`.
    """

    def __init__(self, routes: dict | None = None, delay: float = 0.0):
        self.routes = dict(routes or {})
        self.calls: list[str] = []
        self.delay = delay

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        if self.delay:
            await asyncio.sleep(self.delay)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"detail": "Not found."})
        if callable(route):
            route = route(request)
        if isinstance(route, Exception):
            raise route
        return route

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def count(self, path: str) -> int:
        return self.calls.count(path)


def healthy_routes(bootstrap=None) -> dict:
    return {
        BOOTSTRAP_PATH: lambda r: httpx.Response(200, json=bootstrap or LIVE_BOOTSTRAP),
        FIXTURES_PATH:  lambda r: httpx.Response(200, json=FIXTURES),
        GITHUB_PATH:    lambda r: httpx.Response(200, text=CSV_TEXT),
    }


@pytest.fixture
def store() -> CacheStore:
    return CacheStore()


@pytest.fixture
def morning_clock() -> FixedClock:
    return FixedClock(utc_ts(2025, 10, 18, 10, 0))


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream(healthy_routes())
