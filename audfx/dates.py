"""UTC calendar-date helpers."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta


def to_iso_date_utc(moment: datetime) -> str:
    """Format the UTC calendar date of ``moment`` as YYYY-MM-DD.

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return moment.date().isoformat()


def build_past_dates_utc(days: int, now: datetime | None = None) -> list[str]:
    """Return ``days`` consecutive UTC dates ending today, oldest first."""
    today = date.fromisoformat(to_iso_date_utc(now or datetime.now(UTC)))
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]
