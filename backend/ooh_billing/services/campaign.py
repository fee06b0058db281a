import logging
from datetime import date
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ooh_billing.api.schemas import BookingUpdate
from ooh_billing.core.config import settings
from ooh_billing.models.campaign import Campaign
from ooh_billing.models.campaign_asset import CampaignAsset
from ooh_billing.services.campaign_totals import CampaignTotals, compute_campaign_totals
from ooh_billing.services.pricing import BillingMode, compute_rent, round_whole, to_decimal
from ooh_billing.services.renewal import (
    CampaignEconomics,
    OneTimeCostPolicy,
    RenewalAction,
    RenewalEstimate,
    RenewalPlan,
    estimate_renewal_amount,
    plan_renewal,
)
from ooh_billing.services.sources import RecordNotFoundError
from ooh_billing.services.timeline import log_timeline_event

logger = logging.getLogger(__name__)


class CampaignStatus(StrEnum):
    UPCOMING = "Upcoming"
    RUNNING = "Running"
    COMPLETED = "Completed"


# Fields carried onto a copied booking; everything operational starts fresh
_COPIED_BOOKING_FIELDS = (
    "asset_id",
    "location",
    "area",
    "direction",
    "media_type",
    "illumination_type",
    "dimensions",
    "total_sqft",
    "card_rate",
    "negotiated_rate",
    "billing_mode",
)


async def get_campaign(db: AsyncSession, campaign_id: int) -> Campaign:
    campaign = await db.get(Campaign, campaign_id)
    if campaign is None:
        raise RecordNotFoundError("Campaign", campaign_id)
    return campaign


async def get_campaign_asset(db: AsyncSession, campaign_asset_id: int) -> CampaignAsset:
    booking = await db.get(CampaignAsset, campaign_asset_id)
    if booking is None:
        raise RecordNotFoundError("Campaign asset", campaign_asset_id)
    return booking


# ---------------------------------------------------------------------------
# Bookings and totals
# ---------------------------------------------------------------------------


def reprice_booking(booking: CampaignAsset) -> None:
    """Rewrite the cached booked_days / daily_rate / rent_amount of a booking."""
    provided = booking.daily_rate if booking.billing_mode == BillingMode.DAILY else None
    quote = compute_rent(
        booking.monthly_rate,
        booking.booking_start_date,
        booking.booking_end_date,
        booking.billing_mode,
        provided,
    )
    booking.booked_days = quote.booked_days
    booking.daily_rate = quote.daily_rate
    booking.rent_amount = quote.rent_amount


def apply_totals(campaign: Campaign) -> CampaignTotals:
    """Recompute the campaign's financial snapshot from its bookings."""
    totals = compute_campaign_totals(
        campaign.assets, campaign.gst_percent, campaign.manual_discount_amount
    )
    campaign.subtotal = totals.subtotal
    campaign.printing_total = totals.printing_total
    campaign.mounting_total = totals.mounting_total
    campaign.total_amount = totals.total_amount
    campaign.gst_amount = totals.gst_amount
    campaign.grand_total = totals.grand_total
    return totals


async def update_booking(
    db: AsyncSession, booking: CampaignAsset, data: BookingUpdate
) -> CampaignAsset:
    """Apply an edit to a booking, re-derive its rent and the campaign totals."""
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(booking, field, value)
    reprice_booking(booking)

    campaign = await get_campaign(db, booking.campaign_id)
    apply_totals(campaign)

    await db.commit()
    await db.refresh(booking)
    logger.info(
        "Booking %s repriced: %s days, rent %s", booking.id, booking.booked_days, booking.rent_amount
    )
    return booking


# ---------------------------------------------------------------------------
# Renewal
# ---------------------------------------------------------------------------


def campaign_economics(campaign: Campaign) -> CampaignEconomics:
    return CampaignEconomics(
        start_date=campaign.start_date,
        end_date=campaign.end_date,
        grand_total=campaign.grand_total,
        subtotal=campaign.subtotal,
        printing_total=campaign.printing_total,
        mounting_total=campaign.mounting_total,
        gst_percent=campaign.gst_percent,
    )


def preview_renewal(
    campaign: Campaign,
    action: str,
    duration_option: str,
    *,
    custom_end: date | None = None,
    new_start: date | None = None,
    new_end: date | None = None,
    one_time_cost_policy: str | None = None,
    today: date | None = None,
) -> tuple[RenewalPlan, RenewalEstimate]:
    plan = plan_renewal(
        action,
        campaign.end_date,
        duration_option,
        custom_end=custom_end,
        new_start=new_start,
        new_end=new_end,
        today=today,
    )
    estimate = estimate_renewal_amount(
        campaign_economics(campaign), plan, one_time_cost_policy or settings.one_time_cost_policy
    )
    return plan, estimate


async def apply_extension(
    db: AsyncSession,
    campaign: Campaign,
    plan: RenewalPlan,
    estimate: RenewalEstimate,
    notes: str | None = None,
) -> Campaign:
    """Push an existing campaign's end date forward (extend / renew)."""
    if plan.action is RenewalAction.COPY_NEW:
        raise ValueError("copy_new creates a new campaign; use create_campaign_copy")

    previous_end = campaign.end_date
    previous_status = campaign.status
    campaign.end_date = plan.new_end
    if campaign.status == CampaignStatus.COMPLETED:
        campaign.status = CampaignStatus.RUNNING

    for booking in campaign.assets:
        booking.booking_end_date = plan.new_end
        if plan.action is RenewalAction.RENEW:
            booking.installation_status = "Pending"
            booking.photos = None
            booking.completed_at = None
        reprice_booking(booking)
    apply_totals(campaign)

    extended = plan.action is RenewalAction.EXTEND
    verb = "extended" if extended else "renewed"
    description = (
        f"Campaign {verb} from {previous_end:%b %d, %Y} to {plan.new_end:%b %d, %Y}. {notes or ''}"
    ).strip()
    await log_timeline_event(
        db,
        campaign_id=campaign.id,
        event_type="campaign_extended" if extended else "campaign_renewed",
        event_title="Campaign Extended" if extended else "Campaign Renewed",
        event_description=description,
        details={
            "previous_end_date": previous_end.isoformat(),
            "new_end_date": plan.new_end.isoformat(),
            "extension_days": plan.extension_days,
            "extension_type": plan.action.value,
            "previous_status": previous_status,
            "estimated_amount": str(estimate.renewal_amount),
            "notes": notes,
        },
    )

    await db.commit()
    await db.refresh(campaign)
    logger.info("Campaign %s %s until %s", campaign.id, verb, plan.new_end)
    return campaign


def _one_time_charge(
    value: Decimal | None, policy: OneTimeCostPolicy, ratio: Decimal | None
) -> Decimal:
    if policy is OneTimeCostPolicy.EXCLUDE:
        return Decimal("0")
    amount = to_decimal(value)
    if policy is OneTimeCostPolicy.SCALE and ratio is not None:
        return round_whole(amount * ratio)
    return amount


def _copy_booking(
    source: CampaignAsset,
    plan: RenewalPlan,
    policy: OneTimeCostPolicy,
    ratio: Decimal | None = None,
) -> CampaignAsset:
    booking = CampaignAsset(
        **{name: getattr(source, name) for name in _COPIED_BOOKING_FIELDS},
        booking_start_date=plan.new_start,
        booking_end_date=plan.new_end,
        daily_rate=source.daily_rate if source.billing_mode == BillingMode.DAILY else 0,
        printing_charges=_one_time_charge(source.printing_charges, policy, ratio),
        mounting_charges=_one_time_charge(source.mounting_charges, policy, ratio),
        status="Pending",
        installation_status="Pending",
        photos=None,
        assigned_mounter_id=None,
        mounter_name=None,
        assigned_at=None,
        completed_at=None,
    )
    reprice_booking(booking)
    return booking


def _copy_financials(
    campaign: Campaign, estimate: RenewalEstimate, policy: OneTimeCostPolicy
) -> dict[str, Decimal]:
    """Financial snapshot for a copied campaign.

    A degraded estimate has no prorated figures; the source campaign's
    rental subtotal is carried over unchanged and one-time costs follow
    the policy (unscaled, since there is no duration ratio).
    """
    if estimate.grand_total is not None:
        return {
            "subtotal": estimate.subtotal,
            "printing_total": estimate.printing_total,
            "mounting_total": estimate.mounting_total,
            "total_amount": estimate.total_amount,
            "gst_amount": estimate.gst_amount,
            "grand_total": estimate.grand_total,
        }

    subtotal = to_decimal(campaign.subtotal)
    printing = _one_time_charge(campaign.printing_total, policy, None)
    mounting = _one_time_charge(campaign.mounting_total, policy, None)
    total_amount = round_whole(subtotal + printing + mounting)
    gst_amount = round_whole(total_amount * to_decimal(campaign.gst_percent) / 100)
    return {
        "subtotal": subtotal,
        "printing_total": printing,
        "mounting_total": mounting,
        "total_amount": total_amount,
        "gst_amount": gst_amount,
        "grand_total": total_amount + gst_amount,
    }


async def create_campaign_copy(
    db: AsyncSession,
    campaign: Campaign,
    plan: RenewalPlan,
    estimate: RenewalEstimate,
    one_time_cost_policy: str | None = None,
) -> Campaign:
    """Start a new campaign for the planned period and close the source one."""
    if plan.action is not RenewalAction.COPY_NEW:
        raise ValueError("create_campaign_copy only handles copy_new")
    policy = OneTimeCostPolicy(one_time_cost_policy or settings.one_time_cost_policy)
    ratio = (
        Decimal(plan.new_duration_days) / estimate.original_days
        if estimate.original_days > 0
        else None
    )
    if estimate.grand_total is None:
        logger.warning(
            "Campaign %s has no usable day span; copy carries its financials over: %s",
            campaign.id,
            [w.value for w in estimate.warnings],
        )

    bookings: list[CampaignAsset] = []
    seen_assets: set[int] = set()
    for source in campaign.assets:
        if source.asset_id is not None:
            if source.asset_id in seen_assets:
                continue
            seen_assets.add(source.asset_id)
        bookings.append(_copy_booking(source, plan, policy, ratio))

    new_campaign = Campaign(
        client_id=campaign.client_id,
        company_id=campaign.company_id,
        campaign_name=f"{campaign.campaign_name} (Renewal)",
        start_date=plan.new_start,
        end_date=plan.new_end,
        status=CampaignStatus.UPCOMING.value,
        billing_cycle=campaign.billing_cycle,
        gst_percent=campaign.gst_percent,
        **_copy_financials(campaign, estimate, policy),
        manual_discount_amount=0,
        created_from=f"copy:{campaign.id}",
        assets=bookings,
    )
    db.add(new_campaign)
    campaign.status = CampaignStatus.COMPLETED.value
    await db.flush()

    await log_timeline_event(
        db,
        campaign_id=new_campaign.id,
        event_type="campaign_created",
        event_title="Campaign Created from Renewal",
        event_description=f"Copied from campaign {campaign.id} ({campaign.campaign_name})",
        details={
            "source_campaign_id": campaign.id,
            "new_start_date": plan.new_start.isoformat(),
            "new_end_date": plan.new_end.isoformat(),
            "one_time_cost_policy": policy.value,
            "warnings": [w.value for w in estimate.warnings],
        },
    )

    await db.commit()
    await db.refresh(new_campaign)
    logger.info(
        "Campaign %s copied to %s with %d bookings", campaign.id, new_campaign.id, len(bookings)
    )
    return new_campaign


async def submit_renewal(
    db: AsyncSession,
    campaign: Campaign,
    plan: RenewalPlan,
    estimate: RenewalEstimate,
    *,
    notes: str | None = None,
    one_time_cost_policy: str | None = None,
) -> Campaign:
    if plan.action is RenewalAction.COPY_NEW:
        return await create_campaign_copy(db, campaign, plan, estimate, one_time_cost_policy)
    return await apply_extension(db, campaign, plan, estimate, notes)


# ---------------------------------------------------------------------------
# Status lifecycle
# ---------------------------------------------------------------------------


async def refresh_campaign_statuses(db: AsyncSession, today: date | None = None) -> dict[str, int]:
    """Upcoming -> Running once started, Running -> Completed once ended."""
    today = today or date.today()
    started = await db.execute(
        update(Campaign)
        .where(Campaign.status == CampaignStatus.UPCOMING.value, Campaign.start_date <= today)
        .values(status=CampaignStatus.RUNNING.value)
    )
    ended = await db.execute(
        update(Campaign)
        .where(Campaign.status == CampaignStatus.RUNNING.value, Campaign.end_date < today)
        .values(status=CampaignStatus.COMPLETED.value)
    )
    await db.commit()
    return {"started": started.rowcount or 0, "completed": ended.rowcount or 0}
