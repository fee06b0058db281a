"""Fire-and-forget campaign timeline logging."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ooh_billing.models.campaign_timeline import CampaignTimelineEvent

logger = logging.getLogger(__name__)


async def log_timeline_event(
    db: AsyncSession,
    *,
    campaign_id: int,
    event_type: str,
    event_title: str,
    event_description: str | None = None,
    details: dict | None = None,
) -> None:
    """Add a timeline entry to the current unit of work. Exceptions are caught and logged."""
    try:
        entry = CampaignTimelineEvent(
            campaign_id=campaign_id,
            event_type=event_type,
            event_title=event_title,
            event_description=event_description,
            details=details,
        )
        db.add(entry)
        await db.flush()
    except Exception:
        logger.exception("Failed to write timeline event: %s campaign/%s", event_type, campaign_id)
