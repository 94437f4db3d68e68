"""
app/scrapers/github.py
═══════════════════════════════════════════════════════════════════════════════
Fetches the merged per-gameweek player CSV hosted on GitHub.

Feed format (one row per player per gameweek):
  name,position,team,xP,assists,bonus,...,total_points,...,GW
  Mohamed Salah,MID,Liverpool,7.2,1,3,...,14,...,1

Parsing:
  • header row → record keys
  • numbers/booleans inferred per column, blanks → null
  • rows with more or fewer fields than the header are skipped and
    reported as ParseWarning with their line number; they never block
    the rows that did parse
  • integer columns with blanks stay integers (blank → null)

The cached entry also remembers the era (morning/evening UTC) it was
fetched in; the era is stamped at the moment parsing succeeds.
═══════════════════════════════════════════════════════════════════════════════
"""

import csv
import io
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
import pandas as pd

from app.core.cache import CacheStore
from app.core.config import GITHUB, GITHUB_CSV_URL, GITHUB_TIMEOUT_S
from app.core.errors import TransientUpstreamError
from app.core.freshness import current_era
from app.core.http_client import github_client, get_upstream
from app.scrapers.fpl import stale_or_raise

log = logging.getLogger("github")


@dataclass
class ParseWarning:
    row: int
    message: str


def _split_rows(text: str) -> tuple[list[str], list[list[str]], list[ParseWarning]]:
    """Tokenize the feed and drop rows whose width does not match the header."""
    reader = csv.reader(io.StringIO(text))
    header: list[str] = []
    rows: list[list[str]] = []
    warnings: list[ParseWarning] = []
    for fields in reader:
        if not any(f.strip() for f in fields):
            continue
        if not header:
            header = fields
            continue
        if len(fields) != len(header):
            warnings.append(ParseWarning(
                row=reader.line_num,
                message=f"expected {len(header)} fields, got {len(fields)}: {fields[:3]}",
            ))
            continue
        rows.append(fields)
    return header, rows, warnings


def _restore_integers(df: pd.DataFrame) -> pd.DataFrame:
    # a blank cell turns a whole int column into floats; whole numbers stay ints
    for col in df.select_dtypes(include="float").columns:
        values = df[col].dropna()
        if len(values) and (values % 1 == 0).all():
            df[col] = df[col].astype("Int64")
    return df


def parse_csv(text: str) -> tuple[list[dict], list[ParseWarning]]:
    """Parse CSV text into records. Raises ValueError if there is nothing parseable."""
    if not text or not text.strip():
        raise ValueError("empty CSV body")

    try:
        header, rows, warnings = _split_rows(text)
    except csv.Error as ex:
        raise ValueError(str(ex)) from ex

    # every row now has exactly len(header) fields, so pandas only infers types
    buf = io.StringIO()
    csv.writer(buf).writerows([header, *rows])
    try:
        df = pd.read_csv(io.StringIO(buf.getvalue()), engine="python")
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as ex:
        raise ValueError(str(ex)) from ex

    df = _restore_integers(df)
    records = df.astype(object).where(df.notna(), None).to_dict(orient="records")
    return records, warnings


async def fetch_github_csv(
    store: CacheStore,
    client: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.time,
) -> Any:
    log.info("Fetching GitHub CSV...")
    client = client or github_client()
    try:
        resp = await get_upstream(client, GITHUB_CSV_URL, GITHUB, GITHUB_TIMEOUT_S)
        log.info(f"GitHub CSV fetched ({round(len(resp.content) / 1024)}KB)")
        try:
            records, warnings = parse_csv(resp.text)
        except ValueError as ex:
            raise TransientUpstreamError(GITHUB, f"unparseable CSV: {ex}")
    except TransientUpstreamError as ex:
        return stale_or_raise(store, GITHUB, ex)

    if warnings:
        log.warning(f"CSV parsing warnings: {len(warnings)} malformed rows skipped")
        for w in warnings[:5]:
            log.debug(f"  line {w.row}: {w.message}")
    log.info(f"Parsed {len(records)} player records")

    fetched_at = clock()
    store.write(GITHUB, records, fetched_at=fetched_at, era=current_era(fetched_at))
    return records
