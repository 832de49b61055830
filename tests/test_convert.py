"""Tests for AUD re-basing and latest-rate lookup."""

from __future__ import annotations

import math

import pytest
from conftest import FakeSource, snapshot

from audfx.convert import (
    convert_aud_amount,
    latest_aud_rates,
    normalize_targets,
    rebase_to_aud,
)
from audfx.models import DEFAULT_CURRENCIES
from audfx.oxr import UpstreamError


class TestRebaseToAud:
    def test_aud_base_is_noop(self):
        out = rebase_to_aud({"USD": 0.65, "EUR": 0.60, "AUD": 1})
        assert out["USD"] == pytest.approx(0.65)
        assert out["EUR"] == pytest.approx(0.60)
        assert out["AUD"] == 1

    def test_divides_by_aud(self):
        # 1 USD = 1.5 AUD, so 1 AUD = 1/1.5 USD
        out = rebase_to_aud({"USD": 1.0, "EUR": 0.9, "AUD": 1.5})
        assert out["USD"] == pytest.approx(1 / 1.5)
        assert out["EUR"] == pytest.approx(0.9 / 1.5)
        assert out["AUD"] == 1

    def test_does_not_mutate_input(self):
        src = {"USD": 0.7, "AUD": 2.0}
        before = dict(src)
        out = rebase_to_aud(src)
        assert src == before
        assert out is not src

    def test_missing_aud_gives_nan(self):
        out = rebase_to_aud({"USD": 0.65, "EUR": 0.60})
        assert math.isnan(out["USD"])
        assert math.isnan(out["EUR"])
        assert out["AUD"] == 1

    def test_zero_aud_gives_infinity(self):
        out = rebase_to_aud({"USD": 0.65, "AUD": 0})
        assert out["USD"] == math.inf
        assert out["AUD"] == 1

    def test_zero_aud_with_negative_and_zero_values(self):
        out = rebase_to_aud({"XXX": -2.0, "YYY": 0.0, "AUD": 0.0})
        assert out["XXX"] == -math.inf
        assert math.isnan(out["YYY"])


class TestNormalizeTargets:
    def test_defaults_when_missing(self):
        assert normalize_targets(None) == list(DEFAULT_CURRENCIES)
        assert normalize_targets([]) == list(DEFAULT_CURRENCIES)

    def test_trim_upper_dedupe(self):
        assert normalize_targets(["usd", " JPY ", "", "usd"]) == ["USD", "JPY"]

    def test_only_blanks(self):
        assert normalize_targets(["", "  "]) == []


SOURCE_RATES = {
    "USD": 0.65,
    "EUR": 0.60,
    "JPY": 100,
    "GBP": 0.5,
    "CNY": 0.45,
    "AUD": 1,
}


class TestLatestAudRates:
    @pytest.mark.asyncio
    async def test_defaults(self):
        source = FakeSource(latest=snapshot(SOURCE_RATES, timestamp=1234567890))
        res = await latest_aud_rates(source)

        assert res.base == "AUD"
        assert res.timestamp == 1234567890
        assert set(res.rates) == set(DEFAULT_CURRENCIES)
        assert source.latest_calls == 1

    @pytest.mark.asyncio
    async def test_targets_normalized(self):
        source = FakeSource(latest=snapshot(SOURCE_RATES))
        res = await latest_aud_rates(source, ["usd", " JPY ", "", "usd"])
        assert set(res.rates) == {"USD", "JPY"}

    @pytest.mark.asyncio
    async def test_unknown_target_dropped(self):
        source = FakeSource(latest=snapshot(SOURCE_RATES))
        res = await latest_aud_rates(source, ["ABC"])
        assert res.rates == {}

    @pytest.mark.asyncio
    async def test_rates_are_rebased(self):
        source = FakeSource(latest=snapshot({"USD": 1.0, "AUD": 1.6}))
        res = await latest_aud_rates(source, ["USD", "AUD"])
        assert res.rates["USD"] == pytest.approx(0.625)
        assert res.rates["AUD"] == 1

    @pytest.mark.asyncio
    async def test_propagates_upstream_errors(self):
        source = FakeSource(latest=UpstreamError(500, "boom"))
        with pytest.raises(UpstreamError, match="boom"):
            await latest_aud_rates(source)

    def test_to_dict(self):
        from audfx.models import LatestRates

        data = LatestRates(timestamp=1, rates={"USD": 0.65}).to_dict()
        assert data == {"base": "AUD", "timestamp": 1, "rates": {"USD": 0.65}}


class TestConvertAudAmount:
    @pytest.mark.asyncio
    async def test_multiplies_by_rate(self):
        source = FakeSource(latest=snapshot({"USD": 0.65, "EUR": 0.6, "AUD": 1}))
        res = await convert_aud_amount(source, 100.0, ["usd", "EUR"])

        assert res.amount == 100.0
        assert [t.code for t in res.targets] == ["USD", "EUR"]
        assert res.targets[0].amount == pytest.approx(65.0)
        assert res.targets[1].rate == pytest.approx(0.6)

    @pytest.mark.asyncio
    async def test_unknown_code_has_no_rate(self):
        source = FakeSource(latest=snapshot({"USD": 0.65, "AUD": 1}))
        res = await convert_aud_amount(source, 10.0, ["XYZ"])

        assert res.targets[0].code == "XYZ"
        assert res.targets[0].rate is None
        assert res.targets[0].amount is None
        assert res.to_dict()["targets"] == [{"code": "XYZ", "rate": None, "amount": None}]
