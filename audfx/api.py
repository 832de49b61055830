"""FastAPI application serving AUD rates to the web UI.

Run locally:
    uvicorn audfx.api:app --reload --port 8000
"""

from __future__ import annotations

import logging
import math
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import httpx
from fastapi import APIRouter, Depends, FastAPI, Query
from fastapi.responses import JSONResponse

from audfx import __version__
from audfx.config import Settings, get_settings
from audfx.convert import latest_aud_rates
from audfx.history import get_history_by_date_aud, to_by_currency
from audfx.log import setup_logging
from audfx.models import DEFAULT_CURRENCIES, series_to_dict
from audfx.oxr import OXRClient

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_DAYS = 14
MAX_HISTORY_DAYS = 60

LATEST_CACHE_CONTROL = "no-store, must-revalidate"
HISTORY_CACHE_CONTROL = "public, max-age=300"

ClientFactory = Callable[[], AbstractAsyncContextManager[Any]]


def _finite_or_none(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _finite_or_none(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_finite_or_none(v) for v in value]
    return value


class RatesJSONResponse(JSONResponse):
    """JSON response that writes NaN and +/-inf rates as null."""

    def render(self, content: Any) -> bytes:
        return super().render(_finite_or_none(content))


def get_client_factory(settings: Settings = Depends(get_settings)) -> ClientFactory:
    """FastAPI dependency: open an OXR client for the duration of a request."""

    @asynccontextmanager
    async def open_client() -> AsyncIterator[OXRClient]:
        async with httpx.AsyncClient(timeout=settings.http_timeout) as http:
            yield OXRClient(settings, http)

    return open_client


def parse_days(raw: str | None) -> int:
    """Lenient ``days`` parsing: junk, missing or 0 -> 14, then clamp to 1..60.

    Fractions are clamped first and then truncated, so "3.5" is 3 days and
    "0.5" is 1 day.
    """
    try:
        days = float(raw) if raw is not None else math.nan
    except ValueError:
        days = math.nan
    if math.isnan(days) or days == 0:
        days = DEFAULT_HISTORY_DAYS
    return int(max(1, min(MAX_HISTORY_DAYS, days)))


def _error_response(exc: Exception, fallback: str) -> RatesJSONResponse:
    return RatesJSONResponse({"error": str(exc) or fallback}, status_code=502)


router = APIRouter()


@router.get("/latest")
async def get_latest_rates(
    targets: str | None = Query(default=None, description="Comma-separated codes, e.g. USD,EUR"),
    open_client: ClientFactory = Depends(get_client_factory),
) -> RatesJSONResponse:
    """Latest AUD-based rates, optionally limited to ``targets``."""
    target_list = targets.split(",") if targets else list(DEFAULT_CURRENCIES)
    try:
        async with open_client() as client:
            data = await latest_aud_rates(client, target_list)
    except Exception as exc:
        logger.exception("Latest rates request failed")
        return _error_response(exc, "fetch failed")
    return RatesJSONResponse(
        data.to_dict(),
        headers={"Cache-Control": LATEST_CACHE_CONTROL},
    )


@router.get("/history")
async def get_history(
    days: str | None = Query(default=None),
    orient: str | None = Query(default=None),
    open_client: ClientFactory = Depends(get_client_factory),
) -> RatesJSONResponse:
    """AUD history for the default currencies, by currency or by date."""
    window = parse_days(days)
    by_currency = (orient or "byCurrency").lower() == "bycurrency"
    try:
        async with open_client() as client:
            table = await get_history_by_date_aud(client, window, DEFAULT_CURRENCIES)
    except Exception as exc:
        logger.exception("History request failed")
        return _error_response(exc, "history fetch failed")

    headers = {"Cache-Control": HISTORY_CACHE_CONTROL}
    if by_currency:
        series = to_by_currency(table.points, DEFAULT_CURRENCIES)
        body = {
            "base": table.base,
            "startDate": table.start_date,
            "endDate": table.end_date,
            "series": series_to_dict(series),
        }
        return RatesJSONResponse(body, headers=headers)
    return RatesJSONResponse(table.to_dict(), headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging when the server starts, not when the module is imported."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("Starting audfx API with settings %s", settings.dict_for_logging())
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="audfx", version=__version__, lifespan=lifespan)
    app.include_router(router, prefix="/rates", tags=["rates"])
    return app


app = create_app()
