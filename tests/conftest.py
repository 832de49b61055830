"""Shared fixtures and fake rate sources."""

from __future__ import annotations

import pytest

from audfx.config import Settings, get_settings
from audfx.models import RateSnapshot


class FakeSource:
    """Stands in for OXRClient; records calls and serves canned snapshots.

    ``historical`` maps a date to a snapshot, an exception instance, or a
    list of those consumed one per attempt.
    """

    def __init__(
        self,
        latest: RateSnapshot | Exception | None = None,
        historical: dict[str, object] | None = None,
    ) -> None:
        self.latest = latest
        self.historical = historical or {}
        self.latest_calls = 0
        self.historical_calls: list[str] = []

    async def fetch_latest(self) -> RateSnapshot:
        self.latest_calls += 1
        if isinstance(self.latest, Exception):
            raise self.latest
        assert self.latest is not None
        return self.latest

    async def fetch_historical(self, date: str) -> RateSnapshot:
        self.historical_calls.append(date)
        outcome = self.historical.get(date)
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if outcome is None:
            raise RuntimeError(f"no snapshot for {date}")
        if isinstance(outcome, Exception):
            raise outcome
        assert isinstance(outcome, RateSnapshot)
        return outcome


def snapshot(rates: dict[str, float], timestamp: int = 1_700_000_000) -> RateSnapshot:
    return RateSnapshot(timestamp=timestamp, base="USD", rates=rates)


@pytest.fixture
def settings() -> Settings:
    return Settings(oxr_base_url="https://api.test/", oxr_app_id="test-key")


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    """Keep retry backoff out of test wall time."""
    monkeypatch.setattr("audfx.history.RETRY_DELAY", 0)


@pytest.fixture
def oxr_env(monkeypatch):
    """Point the cached settings at a fake OXR endpoint."""
    monkeypatch.setenv("OXR_BASE_URL", "https://api.test")
    monkeypatch.setenv("OXR_APP_ID", "test-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
