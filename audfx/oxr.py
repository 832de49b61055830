"""Async client for the Open Exchange Rates (OXR) API.

OXR publishes USD-based rate tables. Two endpoints are used:
    {base}/latest.json?app_id=KEY
    {base}/historical/YYYY-MM-DD.json?app_id=KEY

No retry happens here; callers decide whether a failure is worth repeating.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from audfx.config import Settings
from audfx.models import RateSnapshot

logger = logging.getLogger(__name__)

# Always ask for a fresh table from the provider and any proxy in between
NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class UpstreamError(RuntimeError):
    """Raised when OXR answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "", reason: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"OXR {status_code}: {body or reason}")


class OXRClient:
    """Fetches rate snapshots from OXR using a shared ``httpx.AsyncClient``."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        # Resolve both values up front so a bad config fails before any request
        self._base_url = settings.base_url()
        self._app_id = settings.app_id()
        self._client = client

    async def fetch_latest(self) -> RateSnapshot:
        return await self._get("/latest.json")

    async def fetch_historical(self, date: str) -> RateSnapshot:
        """Fetch the end-of-day snapshot for a UTC calendar date (YYYY-MM-DD)."""
        return await self._get(f"/historical/{date}.json")

    async def _get(self, path: str) -> RateSnapshot:
        url = f"{self._base_url}{path}"
        logger.debug("GET %s", url)
        resp = await self._client.get(
            url,
            params={"app_id": self._app_id},
            headers=NO_CACHE_HEADERS,
        )
        if not resp.is_success:
            body = await _read_body(resp)
            logger.warning("OXR %s returned %d", path, resp.status_code)
            raise UpstreamError(resp.status_code, body, resp.reason_phrase)
        data: dict[str, Any] = resp.json()
        return RateSnapshot.from_payload(data)


async def _read_body(resp: httpx.Response) -> str:
    """Best-effort response text; never raises."""
    try:
        await resp.aread()
        return resp.text
    except Exception:  # noqa: BLE001
        logger.debug("Could not read OXR error body", exc_info=True)
        return ""
