"""
app/core/http_client.py
Shared async httpx clients.
  • fpl_client()    → fantasy.premierleague.com (bootstrap, fixtures, team lookups)
  • github_client() → raw.githubusercontent.com CSV feed
Both send the FPLanner User-Agent. Per-request timeouts are set by the fetchers.
"""

import httpx
from app.core.config import HEADERS, FPL_TIMEOUT_S
from app.core.errors import TransientUpstreamError

_fpl_client:    httpx.AsyncClient | None = None
_github_client: httpx.AsyncClient | None = None

_LIMITS  = httpx.Limits(max_connections=10, max_keepalive_connections=5)
_TIMEOUT = httpx.Timeout(FPL_TIMEOUT_S)


def _new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers=HEADERS,
        timeout=_TIMEOUT,
        follow_redirects=True,
        limits=_LIMITS,
    )


def fpl_client() -> httpx.AsyncClient:
    global _fpl_client
    if _fpl_client is None or _fpl_client.is_closed:
        _fpl_client = _new_client()
    return _fpl_client


def github_client() -> httpx.AsyncClient:
    global _github_client
    if _github_client is None or _github_client.is_closed:
        _github_client = _new_client()
    return _github_client


async def close_all() -> None:
    for c in [_fpl_client, _github_client]:
        if c and not c.is_closed:
            await c.aclose()


async def get_upstream(client: httpx.AsyncClient, url: str, source: str, timeout: float) -> httpx.Response:
    """GET with a bounded timeout. Any transport error or non-2xx becomes TransientUpstreamError."""
    try:
        resp = await client.get(url, timeout=timeout)
    except httpx.TimeoutException:
        raise TransientUpstreamError(source, f"timed out after {timeout:.0f}s")
    except httpx.HTTPError as ex:
        raise TransientUpstreamError(source, f"{type(ex).__name__}: {ex}")
    if not resp.is_success:
        raise TransientUpstreamError(source, f"HTTP {resp.status_code}")
    return resp
