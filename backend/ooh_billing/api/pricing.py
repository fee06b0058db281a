"""Stateless rent previews used by booking forms."""

from fastapi import APIRouter

from ooh_billing.api.schemas import (
    PeriodRentRequest,
    PeriodRentResponse,
    RentQuoteRequest,
    RentQuoteResponse,
)
from ooh_billing.services.pricing import (
    ZERO,
    compute_rent,
    overlap_days,
    period_rent_amount,
    round_money,
    starts_in_period,
)

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/rent", response_model=RentQuoteResponse)
async def rent_quote(body: RentQuoteRequest):
    return compute_rent(
        body.monthly_rate, body.start_date, body.end_date, body.billing_mode, body.daily_rate
    )


@router.post("/period-rent", response_model=PeriodRentResponse)
async def period_rent(body: PeriodRentRequest):
    """Rent owed inside one billing period; one-time charges land in the starting period."""
    days = overlap_days(
        body.booking_start_date, body.booking_end_date, body.period_start, body.period_end
    )
    rent = period_rent_amount(
        body.monthly_rate,
        body.booking_start_date,
        body.booking_end_date,
        body.period_start,
        body.period_end,
        body.billing_mode,
    )
    one_time = ZERO
    if starts_in_period(body.booking_start_date, body.period_start, body.period_end):
        one_time = body.printing_charges + body.mounting_charges
    one_time = round_money(one_time)
    return PeriodRentResponse(
        overlap_days=days, rent_amount=rent, one_time_charges=one_time, total=rent + one_time
    )
