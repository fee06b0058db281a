"""Campaign-level financial aggregation and monthly billing periods."""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Protocol

from dateutil.relativedelta import relativedelta

from ooh_billing.services.pricing import (
    BILLING_CYCLE_DAYS,
    ZERO,
    inclusive_day_span,
    pro_rata_factor,
    round_money,
    round_whole,
    to_decimal,
)

# Guard against runaway loops on corrupt date ranges (10 years)
_MAX_PERIODS = 120


class BookingCharges(Protocol):
    rent_amount: Decimal
    printing_charges: Decimal
    mounting_charges: Decimal


@dataclass(frozen=True)
class CampaignTotals:
    subtotal: Decimal
    printing_total: Decimal
    mounting_total: Decimal
    gross_amount: Decimal
    manual_discount_amount: Decimal
    total_amount: Decimal
    gst_percent: Decimal
    gst_amount: Decimal
    grand_total: Decimal
    total_assets: int

    @property
    def one_time_charges(self) -> Decimal:
        return self.printing_total + self.mounting_total


@dataclass(frozen=True)
class BillingPeriod:
    month_key: str
    label: str
    period_start: date
    period_end: date
    days_in_period: int
    pro_rata_factor: Decimal
    is_first_month: bool
    is_last_month: bool
    is_current_month: bool


def compute_campaign_totals(
    bookings: Iterable[BookingCharges],
    gst_percent: Decimal | int | float | str | None,
    manual_discount: Decimal | int | float | str | None = None,
) -> CampaignTotals:
    """Aggregate cached per-booking rent and one-time charges.

    total_amount = round(subtotal + printing + mounting - discount)
    gst_amount   = round(total_amount * gst_percent / 100)
    grand_total  = total_amount + gst_amount
    """
    subtotal = printing = mounting = ZERO
    count = 0
    for booking in bookings:
        subtotal += to_decimal(booking.rent_amount)
        printing += to_decimal(booking.printing_charges)
        mounting += to_decimal(booking.mounting_charges)
        count += 1

    gross = round_money(subtotal + printing + mounting)
    discount = min(max(to_decimal(manual_discount), ZERO), gross)
    total_amount = round_whole(gross - discount)
    gst = to_decimal(gst_percent)
    gst_amount = round_whole(total_amount * gst / 100)

    return CampaignTotals(
        subtotal=round_money(subtotal),
        printing_total=round_money(printing),
        mounting_total=round_money(mounting),
        gross_amount=gross,
        manual_discount_amount=round_money(discount),
        total_amount=total_amount,
        gst_percent=gst,
        gst_amount=gst_amount,
        grand_total=total_amount + gst_amount,
        total_assets=count,
    )


def _is_full_calendar_month(start: date, end: date) -> bool:
    return (
        start.day == 1
        and (start.year, start.month) == (end.year, end.month)
        and end.day == calendar.monthrange(end.year, end.month)[1]
    )


def _same_month(a: date, b: date) -> bool:
    return (a.year, a.month) == (b.year, b.month)


def billing_periods(start: date, end: date, today: date | None = None) -> list[BillingPeriod]:
    """Split a campaign into calendar-month billing slices.

    Campaigns no longer than one billing cycle are a single slice. A full
    calendar month is billed as one cycle regardless of its length.
    """
    today = today or date.today()
    total_days = inclusive_day_span(start, end)
    if total_days <= 0:
        return []

    if total_days <= BILLING_CYCLE_DAYS:
        return [
            BillingPeriod(
                month_key=start.strftime("%Y-%m"),
                label=start.strftime("%B %Y"),
                period_start=start,
                period_end=end,
                days_in_period=total_days,
                pro_rata_factor=pro_rata_factor(total_days),
                is_first_month=True,
                is_last_month=True,
                is_current_month=_same_month(start, today),
            )
        ]

    periods: list[BillingPeriod] = []
    month_start = start.replace(day=1)
    while month_start <= end and len(periods) < _MAX_PERIODS:
        last_day = calendar.monthrange(month_start.year, month_start.month)[1]
        month_end = month_start.replace(day=last_day)
        period_start = max(start, month_start)
        period_end = min(end, month_end)

        if _is_full_calendar_month(period_start, period_end):
            days, factor = BILLING_CYCLE_DAYS, Decimal("1.00")
        else:
            days = inclusive_day_span(period_start, period_end)
            factor = pro_rata_factor(days)

        periods.append(
            BillingPeriod(
                month_key=period_start.strftime("%Y-%m"),
                label=period_start.strftime("%B %Y"),
                period_start=period_start,
                period_end=period_end,
                days_in_period=days,
                pro_rata_factor=factor,
                is_first_month=not periods,
                is_last_month=False,
                is_current_month=_same_month(period_start, today),
            )
        )
        month_start = month_start + relativedelta(months=1)

    if periods:
        periods[-1] = replace(periods[-1], is_last_month=True)
    return periods
