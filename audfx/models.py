"""Data models for rate snapshots, AUD rate tables and history series."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

BASE_CURRENCY = "AUD"

DEFAULT_CURRENCIES: tuple[str, ...] = ("USD", "EUR", "JPY", "GBP", "CNY")

FETCH_FAILED = "fetch_failed"

# One row per day: {"date": "YYYY-MM-DD", "USD": 0.65, ...} or
# {"date": "YYYY-MM-DD", "error": "fetch_failed"}
HistoryRow = dict[str, Any]


@dataclass(frozen=True, slots=True)
class RateSnapshot:
    timestamp: int
    base: str
    rates: Mapping[str, float]
    disclaimer: str | None = None
    license: str | None = None

    def __post_init__(self) -> None:
        # Read-only copy; the snapshot must not change after it is returned
        object.__setattr__(self, "rates", MappingProxyType(dict(self.rates)))

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> RateSnapshot:
        """Build a snapshot from an OXR JSON payload."""
        return cls(
            timestamp=int(data["timestamp"]),
            base=str(data["base"]),
            rates={str(k): float(v) for k, v in data["rates"].items()},
            disclaimer=data.get("disclaimer"),
            license=data.get("license"),
        )


@dataclass(slots=True)
class LatestRates:
    timestamp: int
    rates: dict[str, float]
    base: str = BASE_CURRENCY

    def to_dict(self) -> dict[str, Any]:
        return {"base": self.base, "timestamp": self.timestamp, "rates": self.rates}


@dataclass(slots=True)
class ConvertedItem:
    code: str
    rate: float | None
    amount: float | None


@dataclass(slots=True)
class ConvertResult:
    timestamp: int
    amount: float
    targets: list[ConvertedItem] = field(default_factory=list)
    base: str = BASE_CURRENCY

    def to_dict(self) -> dict[str, Any]:
        return {
            "base": self.base,
            "timestamp": self.timestamp,
            "amount": self.amount,
            "targets": [
                {"code": t.code, "rate": t.rate, "amount": t.amount}
                for t in self.targets
            ],
        }


@dataclass(slots=True)
class SeriesPoint:
    date: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "value": self.value}


SeriesMap = dict[str, list[SeriesPoint]]


@dataclass(slots=True)
class HistoryTable:
    start_date: str
    end_date: str
    points: list[HistoryRow] = field(default_factory=list)
    base: str = BASE_CURRENCY

    def to_dict(self) -> dict[str, Any]:
        """Wire shape used by the HTTP API (camelCase date keys)."""
        return {
            "base": self.base,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "points": [dict(row) for row in self.points],
        }


def series_to_dict(series: SeriesMap) -> dict[str, list[dict[str, Any]]]:
    return {code: [p.to_dict() for p in points] for code, points in series.items()}
