"""Booking duration and rent computation: pure logic, no DB dependency.

Converts a monthly rate, a booking date range and a billing mode into
booked days, a per-day rate and a rent amount. Billing modes are a
registry of strategies so new ones can be added without touching callers.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from ooh_billing.core.config import settings

BILLING_CYCLE_DAYS: int = settings.billing_cycle_days

CENT = Decimal("0.01")
ZERO = Decimal("0")


class BillingMode(StrEnum):
    PRORATA_30 = "PRORATA_30"
    FULL_MONTH = "FULL_MONTH"
    DAILY = "DAILY"


class InvalidRangeError(ValueError):
    """Raised when a booking ends before it starts."""

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(
            f"Invalid date range: end {end.isoformat()} is before start {start.isoformat()}"
        )


class UnknownBillingModeError(ValueError):
    """Raised when no strategy is registered for a billing mode."""


@dataclass(frozen=True)
class RentQuote:
    booked_days: int
    daily_rate: Decimal
    rent_amount: Decimal
    billing_mode: str


# ---------------------------------------------------------------------------
# Money helpers
# ---------------------------------------------------------------------------


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 0.1 do not drag binary noise along
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    """Round to the currency minor unit, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_whole(value: Decimal) -> Decimal:
    """Round to a whole currency unit, half-up."""
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Duration
# ---------------------------------------------------------------------------


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def inclusive_day_span(start: date | datetime, end: date | datetime) -> int:
    """Inclusive day count without validation; zero or negative when end < start."""
    return (_as_date(end) - _as_date(start)).days + 1


def booked_days(start: date | datetime, end: date | datetime) -> int:
    """Inclusive number of days booked: D..D is 1 day, D..D+6 is 7 days."""
    start_d, end_d = _as_date(start), _as_date(end)
    if end_d < start_d:
        raise InvalidRangeError(start_d, end_d)
    return inclusive_day_span(start_d, end_d)


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Signed calendar-day difference end - start."""
    return (_as_date(end) - _as_date(start)).days


# ---------------------------------------------------------------------------
# Billing mode strategies
# ---------------------------------------------------------------------------

# (monthly_rate, booked_days, provided_daily_rate) -> (raw daily rate, raw rent)
RentStrategy = Callable[[Decimal, int, Decimal | None], tuple[Decimal, Decimal]]


def _prorata_30(
    monthly_rate: Decimal, days: int, provided_daily_rate: Decimal | None,
) -> tuple[Decimal, Decimal]:
    daily = monthly_rate / BILLING_CYCLE_DAYS
    return daily, daily * days


def _full_month(
    monthly_rate: Decimal, days: int, provided_daily_rate: Decimal | None,
) -> tuple[Decimal, Decimal]:
    months = math.ceil(days / BILLING_CYCLE_DAYS)
    return monthly_rate / BILLING_CYCLE_DAYS, monthly_rate * months


def _daily(
    monthly_rate: Decimal, days: int, provided_daily_rate: Decimal | None,
) -> tuple[Decimal, Decimal]:
    if provided_daily_rate is not None and provided_daily_rate > 0:
        daily = provided_daily_rate
    else:
        daily = monthly_rate / BILLING_CYCLE_DAYS
    return daily, daily * days


_STRATEGIES: dict[str, RentStrategy] = {
    BillingMode.PRORATA_30: _prorata_30,
    BillingMode.FULL_MONTH: _full_month,
    BillingMode.DAILY: _daily,
}


def register_billing_mode(mode: str, strategy: RentStrategy) -> None:
    """Register (or replace) the rent strategy for a billing mode."""
    _STRATEGIES[str(mode)] = strategy


def available_billing_modes() -> list[str]:
    return sorted(_STRATEGIES)


def _strategy_for(mode: str) -> RentStrategy:
    try:
        return _STRATEGIES[str(mode)]
    except KeyError:
        raise UnknownBillingModeError(f"Unknown billing mode: {mode}") from None


# ---------------------------------------------------------------------------
# Rent
# ---------------------------------------------------------------------------


def compute_rent(
    monthly_rate: Decimal | int | float | str | None,
    start: date | datetime,
    end: date | datetime,
    billing_mode: str = BillingMode.PRORATA_30,
    provided_daily_rate: Decimal | int | float | str | None = None,
) -> RentQuote:
    """Derive booked days, daily rate and rent for one booking.

    Intermediate values keep full precision; daily_rate and rent_amount
    are rounded once, at the end. A zero or negative monthly rate is a
    comped placement and yields a zero rent.
    """
    days = booked_days(start, end)
    strategy = _strategy_for(billing_mode)
    rate = to_decimal(monthly_rate)
    mode = str(billing_mode)

    if rate <= 0:
        return RentQuote(
            booked_days=days,
            daily_rate=round_money(ZERO),
            rent_amount=round_money(ZERO),
            billing_mode=mode,
        )

    provided = to_decimal(provided_daily_rate) if provided_daily_rate is not None else None
    raw_daily, raw_rent = strategy(rate, days, provided)
    return RentQuote(
        booked_days=days,
        daily_rate=round_money(raw_daily),
        rent_amount=round_money(raw_rent),
        billing_mode=mode,
    )


def pro_rata_factor(days: int) -> Decimal:
    """Fraction of a billing cycle covered by ``days`` (1.00 == one cycle)."""
    return round_money(Decimal(days) / BILLING_CYCLE_DAYS)


# ---------------------------------------------------------------------------
# Billing periods
# ---------------------------------------------------------------------------


def overlap_days(
    booking_start: date,
    booking_end: date,
    period_start: date,
    period_end: date,
) -> int:
    """Inclusive overlap between a booking and a billing period, 0 when disjoint."""
    start = max(_as_date(booking_start), _as_date(period_start))
    end = min(_as_date(booking_end), _as_date(period_end))
    if end < start:
        return 0
    return inclusive_day_span(start, end)


def period_rent_amount(
    monthly_rate: Decimal | int | float | str | None,
    booking_start: date,
    booking_end: date,
    period_start: date,
    period_end: date,
    billing_mode: str = BillingMode.PRORATA_30,
) -> Decimal:
    """Rent owed for the part of a booking that falls inside a billing period."""
    days = overlap_days(booking_start, booking_end, period_start, period_end)
    if days == 0:
        return round_money(ZERO)
    rate = to_decimal(monthly_rate)
    if rate <= 0:
        return round_money(ZERO)
    _, raw_rent = _strategy_for(billing_mode)(rate, days, None)
    return round_money(raw_rent)


def starts_in_period(booking_start: date, period_start: date, period_end: date) -> bool:
    """One-time charges (printing, mounting) are billed in the period the booking starts."""
    return _as_date(period_start) <= _as_date(booking_start) <= _as_date(period_end)
