"""Campaign extension / renewal planning: pure logic, no DB dependency.

Two steps, both side-effect free:

- plan_renewal() projects the new start/end dates for an action
  (extend, renew, copy_new) and a duration option.
- estimate_renewal_amount() prorates the originating campaign's
  economics onto the planned period.

Nothing here is persisted; services.campaign applies a plan on submit.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import StrEnum

from dateutil.relativedelta import relativedelta

from ooh_billing.services.pricing import (
    ZERO,
    booked_days,
    days_between,
    inclusive_day_span,
    round_money,
    round_whole,
    to_decimal,
)


class RenewalAction(StrEnum):
    EXTEND = "extend"
    RENEW = "renew"
    COPY_NEW = "copy_new"


class DurationOption(StrEnum):
    FIFTEEN_DAYS = "15_days"
    ONE_MONTH = "1_month"
    TWO_MONTHS = "2_months"
    THREE_MONTHS = "3_months"
    CUSTOM = "custom"


class OneTimeCostPolicy(StrEnum):
    """How printing / mounting totals move onto a copied campaign."""

    CARRY_OVER = "carry_over"
    SCALE = "scale"
    EXCLUDE = "exclude"


class DegradedEstimateWarning(StrEnum):
    NO_DAY_RATE = "no_day_rate"
    ONE_TIME_COSTS_CARRIED_OVER = "one_time_costs_carried_over"


class InvalidDateError(ValueError):
    """Raised when a requested renewal date violates ordering constraints."""


_PRESET_DELTAS: dict[DurationOption, relativedelta] = {
    DurationOption.FIFTEEN_DAYS: relativedelta(days=15),
    DurationOption.ONE_MONTH: relativedelta(months=1),
    DurationOption.TWO_MONTHS: relativedelta(months=2),
    DurationOption.THREE_MONTHS: relativedelta(months=3),
}


@dataclass(frozen=True)
class RenewalPlan:
    action: RenewalAction
    current_end: date
    new_start: date
    new_end: date
    new_duration_days: int
    extension_days: int


@dataclass(frozen=True)
class CampaignEconomics:
    """The originating campaign's dates and financial snapshot."""

    start_date: date | None
    end_date: date | None
    grand_total: Decimal
    subtotal: Decimal = ZERO
    printing_total: Decimal = ZERO
    mounting_total: Decimal = ZERO
    gst_percent: Decimal = ZERO


@dataclass(frozen=True)
class RenewalEstimate:
    action: RenewalAction
    renewal_amount: Decimal
    original_days: int
    daily_rate: Decimal | None
    subtotal: Decimal | None = None
    printing_total: Decimal | None = None
    mounting_total: Decimal | None = None
    total_amount: Decimal | None = None
    gst_amount: Decimal | None = None
    grand_total: Decimal | None = None
    duration_ratio: Decimal | None = None
    warnings: tuple[DegradedEstimateWarning, ...] = field(default_factory=tuple)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


# ---------------------------------------------------------------------------
# Date planner
# ---------------------------------------------------------------------------


def apply_duration_option(
    new_start: date,
    option: str,
    custom_end: date | None = None,
) -> date:
    """Project an end date from ``new_start``.

    Month options follow calendar months and clamp to the month end
    (Jan 31 + 1 month == Feb 28/29).
    """
    option = DurationOption(option)
    if option is DurationOption.CUSTOM:
        if custom_end is None:
            raise InvalidDateError("A custom duration requires an end date")
        if custom_end <= new_start:
            raise InvalidDateError(
                f"Custom end date {custom_end.isoformat()} must be after {new_start.isoformat()}"
            )
        return custom_end
    return new_start + _PRESET_DELTAS[option]


def plan_renewal(
    action: str,
    current_end: date,
    duration_option: str = DurationOption.ONE_MONTH,
    *,
    custom_end: date | None = None,
    new_start: date | None = None,
    new_end: date | None = None,
    today: date | None = None,
) -> RenewalPlan:
    """Compute the new period for an extend / renew / copy_new action.

    - extend:   starts on the current end date.
    - renew:    starts the day after the current end, but never before today.
    - copy_new: explicit ``new_start`` / ``new_end`` (defaulting to the day
                after the current end and one month later).

    Raises InvalidDateError when the resulting period is empty or, for
    extend / renew, does not push the end date forward.
    """
    action = RenewalAction(action)
    today = today or date.today()

    if action is RenewalAction.COPY_NEW:
        start = new_start or current_end + timedelta(days=1)
        end = new_end or start + relativedelta(months=1)
        if end <= start:
            raise InvalidDateError(
                f"New end date {end.isoformat()} must be after new start date {start.isoformat()}"
            )
    else:
        if action is RenewalAction.EXTEND:
            start = current_end
        else:
            start = max(current_end + timedelta(days=1), today)
        end = apply_duration_option(start, duration_option, custom_end)

    extension = days_between(current_end, end)
    if action is not RenewalAction.COPY_NEW and extension <= 0:
        raise InvalidDateError(
            f"New end date {end.isoformat()} does not extend past {current_end.isoformat()}"
        )

    return RenewalPlan(
        action=action,
        current_end=current_end,
        new_start=start,
        new_end=end,
        new_duration_days=max(booked_days(start, end), 1),
        extension_days=extension,
    )


# ---------------------------------------------------------------------------
# Amount estimator
# ---------------------------------------------------------------------------


def _one_time_costs(
    economics: CampaignEconomics,
    policy: OneTimeCostPolicy,
    ratio: Decimal,
) -> tuple[Decimal, Decimal]:
    printing = to_decimal(economics.printing_total)
    mounting = to_decimal(economics.mounting_total)
    if policy is OneTimeCostPolicy.SCALE:
        return round_whole(printing * ratio), round_whole(mounting * ratio)
    if policy is OneTimeCostPolicy.EXCLUDE:
        return ZERO, ZERO
    return printing, mounting


def estimate_renewal_amount(
    economics: CampaignEconomics,
    plan: RenewalPlan,
    one_time_cost_policy: str = OneTimeCostPolicy.CARRY_OVER,
) -> RenewalEstimate:
    """Estimate the money value of the planned period.

    extend / renew bill only the added days at the original day rate.
    copy_new rebuilds the financials: the rental subtotal is scaled by the
    duration ratio while one-time costs follow ``one_time_cost_policy``.
    The result is a preview and never authoritative.
    """
    policy = OneTimeCostPolicy(one_time_cost_policy)
    grand_total = to_decimal(economics.grand_total)

    if economics.start_date is None or economics.end_date is None:
        original_days = 0
    else:
        original_days = inclusive_day_span(economics.start_date, economics.end_date)

    if original_days <= 0:
        return RenewalEstimate(
            action=plan.action,
            renewal_amount=grand_total,
            original_days=original_days,
            daily_rate=None,
            warnings=(DegradedEstimateWarning.NO_DAY_RATE,),
        )

    daily_rate = grand_total / original_days

    if plan.action is not RenewalAction.COPY_NEW:
        return RenewalEstimate(
            action=plan.action,
            renewal_amount=round_whole(daily_rate * max(1, plan.extension_days)),
            original_days=original_days,
            daily_rate=round_money(daily_rate),
        )

    ratio = Decimal(plan.new_duration_days) / original_days
    subtotal = round_whole(to_decimal(economics.subtotal) * ratio)
    printing, mounting = _one_time_costs(economics, policy, ratio)
    total_amount = round_whole(subtotal + printing + mounting)
    gst_amount = round_whole(total_amount * to_decimal(economics.gst_percent) / 100)
    new_grand_total = total_amount + gst_amount

    warnings: tuple[DegradedEstimateWarning, ...] = ()
    if policy is OneTimeCostPolicy.CARRY_OVER and (printing or mounting):
        warnings = (DegradedEstimateWarning.ONE_TIME_COSTS_CARRIED_OVER,)

    return RenewalEstimate(
        action=plan.action,
        renewal_amount=new_grand_total,
        original_days=original_days,
        daily_rate=round_money(daily_rate),
        subtotal=subtotal,
        printing_total=printing,
        mounting_total=mounting,
        total_amount=total_amount,
        gst_amount=gst_amount,
        grand_total=new_grand_total,
        duration_ratio=round_money(ratio),
        warnings=warnings,
    )
