"""Tests for booking duration and rent computation."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from ooh_billing.services import pricing
from ooh_billing.services.pricing import (
    BillingMode,
    InvalidRangeError,
    UnknownBillingModeError,
    booked_days,
    compute_rent,
    overlap_days,
    period_rent_amount,
    register_billing_mode,
    starts_in_period,
)


class TestBookedDays:
    def test_same_day_is_one_day(self):
        for d in (date(2024, 2, 29), date(2025, 1, 1), date(2025, 12, 31)):
            assert booked_days(d, d) == 1

    def test_inclusive_of_both_ends(self):
        start = date(2025, 1, 1)
        for n in (0, 1, 6, 30, 364):
            assert booked_days(start, start + timedelta(days=n)) == n + 1

    def test_end_before_start_raises(self):
        with pytest.raises(InvalidRangeError) as exc_info:
            booked_days(date(2025, 1, 10), date(2025, 1, 9))
        assert exc_info.value.start == date(2025, 1, 10)
        assert exc_info.value.end == date(2025, 1, 9)


class TestComputeRent:
    def test_prorata_full_january(self):
        quote = compute_rent(Decimal("30000"), date(2025, 1, 1), date(2025, 1, 31))
        assert quote.booked_days == 31
        assert quote.daily_rate == Decimal("1000.00")
        assert quote.rent_amount == Decimal("31000.00")
        assert quote.billing_mode == "PRORATA_30"

    def test_rounds_once_at_the_end(self):
        """333.333... * 7 is 2333.33, not 333.33 * 7 == 2333.31."""
        quote = compute_rent(Decimal("10000"), date(2025, 3, 1), date(2025, 3, 7))
        assert quote.daily_rate == Decimal("333.33")
        assert quote.rent_amount == Decimal("2333.33")

    def test_accepts_float_and_str_rates(self):
        a = compute_rent(30000.0, date(2025, 1, 1), date(2025, 1, 10))
        b = compute_rent("30000", date(2025, 1, 1), date(2025, 1, 10))
        assert a == b
        assert a.rent_amount == Decimal("10000.00")

    def test_is_deterministic(self):
        args = (Decimal("45500"), date(2025, 2, 3), date(2025, 4, 17), BillingMode.PRORATA_30)
        assert compute_rent(*args) == compute_rent(*args)

    @pytest.mark.parametrize("mode", [BillingMode.PRORATA_30, BillingMode.FULL_MONTH, BillingMode.DAILY])
    def test_rent_never_decreases_when_end_moves_later(self, mode):
        start = date(2025, 1, 1)
        previous = Decimal("0")
        for n in range(0, 95):
            rent = compute_rent(Decimal("27500"), start, start + timedelta(days=n), mode).rent_amount
            assert rent >= previous
            previous = rent

    def test_zero_rate_is_zero_rent(self):
        quote = compute_rent(Decimal("0"), date(2025, 1, 1), date(2025, 1, 31))
        assert quote.booked_days == 31
        assert quote.daily_rate == Decimal("0.00")
        assert quote.rent_amount == Decimal("0.00")

    def test_missing_rate_is_zero_rent(self):
        quote = compute_rent(None, date(2025, 1, 1), date(2025, 1, 1))
        assert quote.rent_amount == Decimal("0.00")

    def test_full_month_bills_started_cycles(self):
        thirty = compute_rent(Decimal("30000"), date(2025, 1, 1), date(2025, 1, 30), "FULL_MONTH")
        thirty_one = compute_rent(
            Decimal("30000"), date(2025, 1, 1), date(2025, 1, 31), "FULL_MONTH"
        )
        assert thirty.rent_amount == Decimal("30000.00")
        assert thirty_one.rent_amount == Decimal("60000.00")
        assert thirty_one.daily_rate == Decimal("1000.00")

    def test_daily_uses_provided_day_rate(self):
        quote = compute_rent(
            Decimal("30000"), date(2025, 1, 1), date(2025, 1, 10), "DAILY", Decimal("1200")
        )
        assert quote.daily_rate == Decimal("1200.00")
        assert quote.rent_amount == Decimal("12000.00")

    def test_daily_without_day_rate_falls_back_to_cycle(self):
        quote = compute_rent(Decimal("30000"), date(2025, 1, 1), date(2025, 1, 10), "DAILY")
        assert quote.rent_amount == Decimal("10000.00")

    def test_unknown_mode_raises(self):
        with pytest.raises(UnknownBillingModeError):
            compute_rent(Decimal("30000"), date(2025, 1, 1), date(2025, 1, 10), "WEEKLY")

    def test_invalid_range_propagates(self):
        with pytest.raises(InvalidRangeError):
            compute_rent(Decimal("30000"), date(2025, 1, 10), date(2025, 1, 1))


class TestRegisterBillingMode:
    def test_new_mode_is_used_by_compute_rent(self):
        def weekly(rate, days, provided):
            weeks = -(-days // 7)
            return rate / 4, rate / 4 * weeks

        register_billing_mode("WEEKLY", weekly)
        try:
            quote = compute_rent(Decimal("40000"), date(2025, 1, 1), date(2025, 1, 8), "WEEKLY")
            assert quote.rent_amount == Decimal("20000.00")
            assert "WEEKLY" in pricing.available_billing_modes()
        finally:
            pricing._STRATEGIES.pop("WEEKLY", None)


class TestBillingPeriodHelpers:
    def test_overlap_days(self):
        assert overlap_days(
            date(2025, 1, 15), date(2025, 2, 14), date(2025, 2, 1), date(2025, 2, 28)
        ) == 14
        assert overlap_days(
            date(2025, 1, 1), date(2025, 1, 10), date(2025, 2, 1), date(2025, 2, 28)
        ) == 0

    def test_period_rent_amount(self):
        rent = period_rent_amount(
            Decimal("30000"), date(2025, 1, 15), date(2025, 2, 14), date(2025, 2, 1), date(2025, 2, 28)
        )
        assert rent == Decimal("14000.00")

    def test_period_rent_outside_booking_is_zero(self):
        rent = period_rent_amount(
            Decimal("30000"), date(2025, 1, 1), date(2025, 1, 10), date(2025, 2, 1), date(2025, 2, 28)
        )
        assert rent == Decimal("0.00")

    def test_one_time_charges_land_in_starting_period(self):
        assert starts_in_period(date(2025, 1, 15), date(2025, 1, 1), date(2025, 1, 31))
        assert not starts_in_period(date(2025, 1, 15), date(2025, 2, 1), date(2025, 2, 28))


class TestPricingApi:
    @pytest.mark.asyncio
    async def test_rent_quote(self, client):
        resp = await client.post(
            "/api/pricing/rent",
            json={"monthly_rate": "30000", "start_date": "2025-01-01", "end_date": "2025-01-31"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["booked_days"] == 31
        assert Decimal(data["daily_rate"]) == Decimal("1000")
        assert Decimal(data["rent_amount"]) == Decimal("31000")

    @pytest.mark.asyncio
    async def test_rent_quote_rejects_inverted_range(self, client):
        resp = await client.post(
            "/api/pricing/rent",
            json={"monthly_rate": "30000", "start_date": "2025-01-31", "end_date": "2025-01-01"},
        )
        assert resp.status_code == 422
        assert "before start" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_rent_quote_rejects_unknown_mode(self, client):
        resp = await client.post(
            "/api/pricing/rent",
            json={
                "monthly_rate": "30000",
                "start_date": "2025-01-01",
                "end_date": "2025-01-31",
                "billing_mode": "HOURLY",
            },
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_period_rent_includes_one_time_charges_in_first_period(self, client):
        body = {
            "monthly_rate": "30000",
            "booking_start_date": "2025-01-15",
            "booking_end_date": "2025-02-14",
            "period_start": "2025-01-01",
            "period_end": "2025-01-31",
            "printing_charges": "5000",
            "mounting_charges": "3000",
        }
        resp = await client.post("/api/pricing/period-rent", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["overlap_days"] == 17
        assert Decimal(data["rent_amount"]) == Decimal("17000")
        assert Decimal(data["one_time_charges"]) == Decimal("8000")
        assert Decimal(data["total"]) == Decimal("25000")

        body.update(period_start="2025-02-01", period_end="2025-02-28")
        data = (await client.post("/api/pricing/period-rent", json=body)).json()
        assert data["overlap_days"] == 14
        assert Decimal(data["one_time_charges"]) == Decimal("0")
