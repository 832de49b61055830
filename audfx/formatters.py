"""Output formatters for table, JSON, and CSV."""

from __future__ import annotations

import csv
import io
import json
import math
from datetime import UTC, datetime
from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table

from audfx.models import (
    ConvertResult,
    HistoryTable,
    LatestRates,
    SeriesMap,
    series_to_dict,
)


def _fmt_rate(value: float | None) -> str:
    """Format a rate with up to 4 decimal places."""
    if value is None:
        return "—"
    if not math.isfinite(value):
        return str(value)
    return f"{value:.4f}"


def _fmt_amount(value: float | None) -> str:
    if value is None:
        return "—"
    if not math.isfinite(value):
        return str(value)
    return f"{value:,.2f}"


def _fmt_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=UTC).strftime("%Y-%m-%d %H:%M UTC")


def _render(header: str, table: Table) -> str:
    buf = io.StringIO()
    rich_console = Console(file=buf, width=120, no_color=True)
    rich_console.print(header, end="")
    rich_console.print(table)
    rich_console.print("\nData source: Open Exchange Rates (re-based to AUD)")
    return buf.getvalue()


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2)


# --- Latest rates ---


def format_latest_table(result: LatestRates) -> str:
    """Format latest rates as a Rich table rendered to string."""
    header = (
        f"Latest Rates\n"
        f"============\n"
        f"1 {result.base} as of {_fmt_timestamp(result.timestamp)}\n"
    )
    table = Table(box=box.SIMPLE_HEAD, pad_edge=False)
    table.add_column("Currency", style="bold")
    table.add_column("Rate", justify="right")
    for code, rate in result.rates.items():
        table.add_row(code, _fmt_rate(rate))
    return _render(header, table)


def format_latest_json(result: LatestRates) -> str:
    return _dumps(result.to_dict())


def format_latest_csv(result: LatestRates) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=["currency", "rate"])
    writer.writeheader()
    for code, rate in result.rates.items():
        writer.writerow({"currency": code, "rate": f"{rate:.6f}"})
    return buf.getvalue()


# --- Amount conversion ---


def format_convert_table(result: ConvertResult) -> str:
    header = (
        f"AUD Conversion\n"
        f"==============\n"
        f"{_fmt_amount(result.amount)} {result.base} "
        f"as of {_fmt_timestamp(result.timestamp)}\n"
    )
    table = Table(box=box.SIMPLE_HEAD, pad_edge=False)
    table.add_column("Currency", style="bold")
    table.add_column("Rate", justify="right")
    table.add_column("Amount", justify="right")
    for item in result.targets:
        table.add_row(item.code, _fmt_rate(item.rate), _fmt_amount(item.amount))
    return _render(header, table)


def format_convert_json(result: ConvertResult) -> str:
    return _dumps(result.to_dict())


def format_convert_csv(result: ConvertResult) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=["currency", "rate", "amount"])
    writer.writeheader()
    for item in result.targets:
        writer.writerow(
            {
                "currency": item.code,
                "rate": f"{item.rate:.6f}" if item.rate is not None else "",
                "amount": f"{item.amount:.2f}" if item.amount is not None else "",
            }
        )
    return buf.getvalue()


# --- History ---


def format_history_table(history: HistoryTable, targets: list[str]) -> str:
    """One row per day, one column per currency; failed days are marked."""
    header = (
        f"AUD Rate History\n"
        f"================\n"
        f"Period: {history.start_date} → {history.end_date} "
        f"({len(history.points)} days)\n"
    )
    table = Table(box=box.SIMPLE_HEAD, pad_edge=False)
    table.add_column("Date", style="bold")
    for code in targets:
        table.add_column(code, justify="right")

    failed = 0
    for row in history.points:
        if "error" in row:
            failed += 1
            table.add_row(row["date"], *(["✗"] * len(targets)))
            continue
        table.add_row(row["date"], *(_fmt_rate(row.get(code)) for code in targets))

    text = _render(header, table)
    if failed:
        text += f"\nWarnings:\n  ⚠ {failed} day(s) could not be fetched\n"
    return text


def format_history_json(
    history: HistoryTable,
    series: SeriesMap | None = None,
) -> str:
    """Raw table, or the by-currency layout when ``series`` is given."""
    if series is None:
        return _dumps(history.to_dict())
    return _dumps(
        {
            "base": history.base,
            "startDate": history.start_date,
            "endDate": history.end_date,
            "series": series_to_dict(series),
        }
    )


def format_history_csv(history: HistoryTable, targets: list[str]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=["date", *targets, "error"])
    writer.writeheader()
    for row in history.points:
        out: dict[str, str] = {"date": row["date"], "error": row.get("error", "")}
        for code in targets:
            value = row.get(code)
            out[code] = f"{value:.6f}" if isinstance(value, (int, float)) else ""
        writer.writerow(out)
    return buf.getvalue()
