"""Historical AUD rate tables built from one OXR snapshot per day.

Days are fetched by a small pool of asyncio workers (at most
WORKER_CONCURRENCY requests in flight). Each day is retried a few times;
a day that still fails becomes an error row instead of failing the table.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from numbers import Real
from typing import Protocol

from audfx.convert import rebase_to_aud
from audfx.dates import build_past_dates_utc
from audfx.models import (
    DEFAULT_CURRENCIES,
    FETCH_FAILED,
    HistoryRow,
    HistoryTable,
    RateSnapshot,
    SeriesMap,
    SeriesPoint,
)

logger = logging.getLogger(__name__)

# Upper bound on concurrent historical requests, to stay inside OXR rate limits
WORKER_CONCURRENCY = 4
RETRY_ATTEMPTS = 3
# Seconds between attempts for the same date
RETRY_DELAY = 0.1


class HistoricalSource(Protocol):
    async def fetch_historical(self, date: str) -> RateSnapshot: ...


@dataclass(frozen=True, slots=True)
class FetchFailure:
    date: str
    error: BaseException | None


async def fetch_with_retry(
    source: HistoricalSource,
    date: str,
    attempts: int | None = None,
    delay: float | None = None,
) -> RateSnapshot | FetchFailure:
    """Fetch one historical snapshot, retrying on any error.

    Returns a FetchFailure carrying the last error once attempts run out.
    """
    attempts = RETRY_ATTEMPTS if attempts is None else attempts
    delay = RETRY_DELAY if delay is None else delay
    last_error: BaseException | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await source.fetch_historical(date)
        except Exception as exc:
            last_error = exc
            logger.warning(
                "Historical fetch for %s failed (attempt %d/%d): %s",
                date,
                attempt,
                attempts,
                exc,
            )
            if attempt == attempts:
                break
            await asyncio.sleep(delay)

    logger.error("Giving up on %s after %d attempts", date, attempts)
    return FetchFailure(date=date, error=last_error)


def to_aud_row(usd_rates: Mapping[str, float], targets: Sequence[str], date: str) -> HistoryRow:
    """Re-base one day's table and keep only the requested currencies."""
    aud_rates = rebase_to_aud(usd_rates)
    row: HistoryRow = {"date": date}
    for code in targets:
        if code in aud_rates:
            row[code] = aud_rates[code]
    return row


def _upper_unique(targets: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(t.upper() for t in targets))


async def get_history_by_date_aud(
    source: HistoricalSource,
    days: int,
    targets: Sequence[str],
) -> HistoryTable:
    """Build a date-ordered table of AUD rates covering the last ``days`` days.

    The table always has one row per day; rows for days that could not be
    fetched are ``{"date": ..., "error": "fetch_failed"}``.
    """
    if days < 1:
        raise ValueError("days must be at least 1")

    dates = build_past_dates_utc(days)
    codes = _upper_unique(targets)
    points: list[HistoryRow | None] = [None] * len(dates)
    next_index = 0

    async def worker() -> None:
        nonlocal next_index
        while True:
            # No await between the check and the increment, so each index
            # goes to exactly one worker
            current = next_index
            if current >= len(dates):
                return
            next_index += 1

            date = dates[current]
            result = await fetch_with_retry(source, date)
            if isinstance(result, FetchFailure):
                points[current] = {"date": date, "error": FETCH_FAILED}
            else:
                points[current] = to_aud_row(result.rates, codes, date)

    concurrency = min(WORKER_CONCURRENCY, len(dates))
    logger.info("Fetching %d days of history with %d workers", len(dates), concurrency)
    await asyncio.gather(*(worker() for _ in range(concurrency)))

    rows = [row for row in points if row is not None]
    failed = sum(1 for row in rows if "error" in row)
    if failed:
        logger.warning("%d of %d days could not be fetched", failed, len(rows))

    return HistoryTable(start_date=dates[0], end_date=dates[-1], points=rows)


def to_by_currency(
    points: Sequence[HistoryRow],
    targets: Sequence[str] = DEFAULT_CURRENCIES,
) -> SeriesMap:
    """Transpose date rows into one ascending series per currency.

    Every target gets a key even if it ends up empty; error rows and
    non-numeric values contribute no point.
    """
    series: SeriesMap = {code: [] for code in targets}
    for row in points:
        date = row["date"]
        for code in targets:
            value = row.get(code)
            if isinstance(value, Real) and not isinstance(value, bool):
                series[code].append(SeriesPoint(date=date, value=float(value)))
    return series
