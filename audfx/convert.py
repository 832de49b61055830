"""Re-basing of USD rate tables to AUD and the latest-rates lookup."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Protocol

from audfx.models import (
    BASE_CURRENCY,
    DEFAULT_CURRENCIES,
    ConvertedItem,
    ConvertResult,
    LatestRates,
    RateSnapshot,
)

logger = logging.getLogger(__name__)


class LatestSource(Protocol):
    async def fetch_latest(self) -> RateSnapshot: ...


def _ieee_divide(numerator: float, denominator: float) -> float:
    """Float division that returns inf/NaN on a zero divisor instead of raising."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def rebase_to_aud(rates: Mapping[str, float]) -> dict[str, float]:
    """Re-base USD-quoted rates so each value reads as 1 AUD -> target.

    Every value is divided by the AUD entry and AUD is then forced to 1.
    A missing AUD entry gives NaN for every other currency, and an AUD
    entry of 0 gives +/-inf; neither case is treated as an error.
    """
    aud = rates.get(BASE_CURRENCY, math.nan)
    out = {code: _ieee_divide(value, aud) for code, value in rates.items()}
    out[BASE_CURRENCY] = 1
    return out


def normalize_targets(targets: Sequence[str] | None) -> list[str]:
    """Trim, uppercase, drop blanks and de-duplicate.

    Only a missing or empty sequence falls back to the defaults; a list of
    blanks normalizes to nothing.
    """
    if not targets:
        return list(DEFAULT_CURRENCIES)
    codes: list[str] = []
    for raw in targets:
        code = raw.strip().upper()
        if code and code not in codes:
            codes.append(code)
    return codes


async def latest_aud_rates(
    source: LatestSource,
    targets: Sequence[str] | None = None,
) -> LatestRates:
    """Fetch the latest table and return AUD-based rates for ``targets``.

    Codes the provider does not quote are dropped silently.
    """
    snapshot = await source.fetch_latest()
    aud_rates = rebase_to_aud(snapshot.rates)
    codes = normalize_targets(targets)
    filtered = {c: aud_rates[c] for c in codes if c in aud_rates}
    missing = [c for c in codes if c not in aud_rates]
    if missing:
        logger.info("No upstream rate for %s", ", ".join(missing))
    return LatestRates(timestamp=snapshot.timestamp, rates=filtered)


async def convert_aud_amount(
    source: LatestSource,
    amount: float,
    targets: Sequence[str] | None = None,
) -> ConvertResult:
    """Convert an AUD amount into each target currency at the latest rate."""
    codes = normalize_targets(targets)
    latest = await latest_aud_rates(source, targets)
    items: list[ConvertedItem] = []
    for code in codes:
        rate = latest.rates.get(code)
        items.append(
            ConvertedItem(
                code=code,
                rate=rate,
                amount=amount * rate if rate is not None else None,
            )
        )
    return ConvertResult(timestamp=latest.timestamp, amount=amount, targets=items)
