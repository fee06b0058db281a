from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ooh_billing.api.schemas import (
    BillingPeriodResponse,
    BookingUpdate,
    CampaignAssetResponse,
    CampaignTotalsResponse,
    RenewalEstimateResponse,
    RenewalPlanResponse,
    RenewalPreviewResponse,
    RenewalRequest,
    RenewalResultResponse,
)
from ooh_billing.core.config import settings
from ooh_billing.core.deps import get_db
from ooh_billing.core.idempotency import check_idempotency
from ooh_billing.core.rate_limit import limiter
from ooh_billing.services import campaign as campaign_svc
from ooh_billing.services.campaign_totals import billing_periods, compute_campaign_totals

router = APIRouter(tags=["campaigns"])


def _preview(campaign, body: RenewalRequest):
    return campaign_svc.preview_renewal(
        campaign,
        body.action,
        body.duration_option,
        custom_end=body.custom_end_date,
        new_start=body.new_start_date,
        new_end=body.new_end_date,
        one_time_cost_policy=body.one_time_cost_policy,
    )


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@router.patch("/campaign-assets/{campaign_asset_id}", response_model=CampaignAssetResponse)
async def update_campaign_asset(
    campaign_asset_id: int,
    body: BookingUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Edit dates / rates / billing mode; rent and campaign totals are re-derived."""
    booking = await campaign_svc.get_campaign_asset(db, campaign_asset_id)
    return await campaign_svc.update_booking(db, booking, body)


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


@router.get("/campaigns/{campaign_id}/totals", response_model=CampaignTotalsResponse)
async def campaign_totals(campaign_id: int, db: AsyncSession = Depends(get_db)):
    campaign = await campaign_svc.get_campaign(db, campaign_id)
    totals = compute_campaign_totals(
        campaign.assets, campaign.gst_percent, campaign.manual_discount_amount
    )
    periods = billing_periods(campaign.start_date, campaign.end_date)
    return CampaignTotalsResponse(
        campaign_id=campaign.id,
        subtotal=totals.subtotal,
        printing_total=totals.printing_total,
        mounting_total=totals.mounting_total,
        gross_amount=totals.gross_amount,
        manual_discount_amount=totals.manual_discount_amount,
        total_amount=totals.total_amount,
        gst_percent=totals.gst_percent,
        gst_amount=totals.gst_amount,
        grand_total=totals.grand_total,
        total_assets=totals.total_assets,
        billing_periods=[BillingPeriodResponse.model_validate(p) for p in periods],
    )


@router.post("/campaigns/{campaign_id}/renewal/preview", response_model=RenewalPreviewResponse)
async def preview_renewal(
    campaign_id: int,
    body: RenewalRequest,
    db: AsyncSession = Depends(get_db),
):
    """Projected dates and estimated amount; nothing is written."""
    campaign = await campaign_svc.get_campaign(db, campaign_id)
    plan, estimate = _preview(campaign, body)
    return RenewalPreviewResponse(
        campaign_id=campaign.id,
        plan=RenewalPlanResponse.model_validate(plan),
        estimate=RenewalEstimateResponse.model_validate(estimate),
    )


@router.post(
    "/campaigns/{campaign_id}/renewal", response_model=RenewalResultResponse, status_code=201
)
@limiter.limit(settings.rate_limit_write)
async def submit_renewal(
    request: Request,
    campaign_id: int,
    body: RenewalRequest,
    db: AsyncSession = Depends(get_db),
):
    """Apply extend / renew in place, or start a copied campaign for copy_new."""
    campaign = await campaign_svc.get_campaign(db, campaign_id)
    plan, estimate = _preview(campaign, body)

    is_new = await check_idempotency(
        f"renewal:{campaign.id}:{plan.action}:{plan.new_end.isoformat()}", ttl=60
    )
    if not is_new:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This renewal is already being processed",
        )

    result = await campaign_svc.submit_renewal(
        db,
        campaign,
        plan,
        estimate,
        notes=body.notes,
        one_time_cost_policy=body.one_time_cost_policy,
    )
    return RenewalResultResponse(
        campaign_id=result.id,
        source_campaign_id=campaign_id,
        status=result.status,
        end_date=result.end_date,
        plan=RenewalPlanResponse.model_validate(plan),
        estimate=RenewalEstimateResponse.model_validate(estimate),
    )
