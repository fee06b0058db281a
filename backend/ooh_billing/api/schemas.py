from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, model_validator

from ooh_billing.core.config import settings
from ooh_billing.services.renewal import DurationOption, OneTimeCostPolicy, RenewalAction

# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


class RentQuoteRequest(BaseModel):
    monthly_rate: Decimal
    start_date: date
    end_date: date
    billing_mode: str = settings.default_billing_mode
    daily_rate: Decimal | None = None


class RentQuoteResponse(BaseModel):
    booked_days: int
    daily_rate: Decimal
    rent_amount: Decimal
    billing_mode: str

    model_config = {"from_attributes": True}


class PeriodRentRequest(BaseModel):
    monthly_rate: Decimal
    booking_start_date: date
    booking_end_date: date
    period_start: date
    period_end: date
    billing_mode: str = settings.default_billing_mode
    printing_charges: Decimal = Decimal("0")
    mounting_charges: Decimal = Decimal("0")

    @model_validator(mode="after")
    def _period_ordered(self) -> "PeriodRentRequest":
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class PeriodRentResponse(BaseModel):
    overlap_days: int
    rent_amount: Decimal
    one_time_charges: Decimal
    total: Decimal


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


class BookingUpdate(BaseModel):
    booking_start_date: date | None = None
    booking_end_date: date | None = None
    card_rate: Decimal | None = Field(default=None, ge=0)
    negotiated_rate: Decimal | None = Field(default=None, ge=0)
    billing_mode: str | None = None
    daily_rate: Decimal | None = Field(default=None, ge=0)
    printing_charges: Decimal | None = Field(default=None, ge=0)
    mounting_charges: Decimal | None = Field(default=None, ge=0)


class CampaignAssetResponse(BaseModel):
    id: int
    campaign_id: int
    asset_id: int | None
    location: str | None
    card_rate: Decimal | None
    negotiated_rate: Decimal | None
    billing_mode: str
    booking_start_date: date
    booking_end_date: date
    booked_days: int
    daily_rate: Decimal
    rent_amount: Decimal
    printing_charges: Decimal
    mounting_charges: Decimal
    status: str
    installation_status: str
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


class BillingPeriodResponse(BaseModel):
    month_key: str
    label: str
    period_start: date
    period_end: date
    days_in_period: int
    pro_rata_factor: Decimal
    is_first_month: bool
    is_last_month: bool
    is_current_month: bool

    model_config = {"from_attributes": True}


class CampaignTotalsResponse(BaseModel):
    campaign_id: int
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
    billing_periods: list[BillingPeriodResponse] = []


class RenewalRequest(BaseModel):
    action: RenewalAction
    duration_option: DurationOption = DurationOption.ONE_MONTH
    custom_end_date: date | None = None
    new_start_date: date | None = None
    new_end_date: date | None = None
    one_time_cost_policy: OneTimeCostPolicy | None = None
    notes: str | None = Field(default=None, max_length=2000)


class RenewalPlanResponse(BaseModel):
    action: RenewalAction
    current_end: date
    new_start: date
    new_end: date
    new_duration_days: int
    extension_days: int

    model_config = {"from_attributes": True}


class RenewalEstimateResponse(BaseModel):
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
    warnings: list[str] = []
    degraded: bool = False

    model_config = {"from_attributes": True}


class RenewalPreviewResponse(BaseModel):
    campaign_id: int
    plan: RenewalPlanResponse
    estimate: RenewalEstimateResponse


class RenewalResultResponse(RenewalPreviewResponse):
    """campaign_id is the campaign that now carries the new period."""

    source_campaign_id: int
    status: str
    end_date: date


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------


class ReconciliationGapResponse(BaseModel):
    index: int
    campaign_asset_id: Any = None
    asset_id: Any = None
    asset_code: Any = None

    model_config = {"from_attributes": True}


class InvoiceItemsResponse(BaseModel):
    invoice_id: int
    items: list[Any]
    gaps: list[ReconciliationGapResponse] = []
    regenerated: bool = False


class InvoiceDocumentResponse(BaseModel):
    invoice: dict[str, Any]
    client: dict[str, Any]
    campaign: dict[str, Any] | None
    items: list[Any]
    company: dict[str, Any] | None
    org_settings: dict[str, Any] | None
    logo: str | None = None
    gaps: list[ReconciliationGapResponse] = []

    model_config = {"from_attributes": True}
