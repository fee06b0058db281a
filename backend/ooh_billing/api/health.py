from fastapi import APIRouter

from ooh_billing.core.config import settings
from ooh_billing.services.pricing import available_billing_modes
from ooh_billing.services.renewal import DurationOption, OneTimeCostPolicy

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/config/public")
async def public_config() -> dict:
    """Public billing configuration (modes, cycle length, tax defaults)."""
    return {
        "billing_modes": available_billing_modes(),
        "default_billing_mode": settings.default_billing_mode,
        "billing_cycle_days": settings.billing_cycle_days,
        "default_gst_percent": settings.default_gst_percent,
        "default_hsn_sac": settings.default_hsn_sac,
        "duration_options": [o.value for o in DurationOption],
        "one_time_cost_policies": [p.value for p in OneTimeCostPolicy],
        "default_one_time_cost_policy": settings.one_time_cost_policy,
    }
