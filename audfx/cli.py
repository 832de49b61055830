"""CLI entry point for audfx."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click
import httpx

from audfx import convert, formatters, history
from audfx.config import get_settings
from audfx.log import setup_logging
from audfx.oxr import OXRClient

T = TypeVar("T")

OUTPUT_FORMATS = click.Choice(["table", "json", "csv"])


def _split_targets(raw: str | None) -> list[str] | None:
    """Split ``--targets``; normalizing and defaults are left to the services."""
    return raw.split(",") if raw is not None else None


def _run(job: Callable[[OXRClient], Awaitable[T]]) -> T:
    """Open an OXR client, run ``job`` with it and exit 1 on any failure."""

    async def _main() -> T:
        settings = get_settings()
        async with httpx.AsyncClient(timeout=settings.http_timeout) as http:
            return await job(OXRClient(settings, http))

    try:
        return asyncio.run(_main())
    except Exception as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level for messages on stderr (default: WARNING)",
)
def main(log_level: str) -> None:
    """AUD exchange rates from Open Exchange Rates.

    Requires OXR_BASE_URL and OXR_APP_ID in the environment or a .env file.
    """
    setup_logging(log_level, stream=sys.stderr)


@main.command()
@click.option("--targets", default=None, help="Comma-separated currency codes")
@click.option("--output", "output_format", default="table", type=OUTPUT_FORMATS)
def latest(targets: str | None, output_format: str) -> None:
    """Show the latest AUD-based rates."""
    requested = _split_targets(targets)
    result = _run(lambda client: convert.latest_aud_rates(client, requested))

    if output_format == "json":
        click.echo(formatters.format_latest_json(result))
    elif output_format == "csv":
        click.echo(formatters.format_latest_csv(result), nl=False)
    else:
        click.echo(formatters.format_latest_table(result), nl=False)


@main.command(name="convert")
@click.argument("amount", type=float)
@click.option("--targets", default=None, help="Comma-separated currency codes")
@click.option("--output", "output_format", default="table", type=OUTPUT_FORMATS)
def convert_amount(amount: float, targets: str | None, output_format: str) -> None:
    """Convert an AUD AMOUNT into the target currencies."""
    if amount < 0:
        click.echo("Error: AMOUNT must not be negative.", err=True)
        sys.exit(1)

    requested = _split_targets(targets)
    result = _run(lambda client: convert.convert_aud_amount(client, amount, requested))

    if output_format == "json":
        click.echo(formatters.format_convert_json(result))
    elif output_format == "csv":
        click.echo(formatters.format_convert_csv(result), nl=False)
    else:
        click.echo(formatters.format_convert_table(result), nl=False)


@main.command(name="history")
@click.option(
    "--days",
    default=14,
    show_default=True,
    type=click.IntRange(1, 60),
    help="Number of UTC days ending today",
)
@click.option("--targets", default=None, help="Comma-separated currency codes")
@click.option(
    "--orient",
    default="byCurrency",
    type=click.Choice(["byCurrency", "raw"], case_sensitive=False),
    help="JSON layout: per-currency series or raw date rows",
)
@click.option("--output", "output_format", default="table", type=OUTPUT_FORMATS)
def show_history(days: int, targets: str | None, orient: str, output_format: str) -> None:
    """Show AUD rate history for the last DAYS days."""
    codes = convert.normalize_targets(_split_targets(targets))
    table = _run(lambda client: history.get_history_by_date_aud(client, days, codes))

    if output_format == "json":
        series = None
        if orient.lower() == "bycurrency":
            series = history.to_by_currency(table.points, codes)
        click.echo(formatters.format_history_json(table, series))
    elif output_format == "csv":
        click.echo(formatters.format_history_csv(table, codes), nl=False)
    else:
        click.echo(formatters.format_history_table(table, codes), nl=False)


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("audfx.api:app", host=host, port=port)


if __name__ == "__main__":
    main()
