"""Daily campaign status lifecycle: Upcoming -> Running -> Completed."""

import logging
from datetime import date

from ooh_billing.db.session import async_session_factory
from ooh_billing.workers import celery_app, worker_loop

logger = logging.getLogger(__name__)


@celery_app.task(
    name="refresh_campaign_statuses", bind=True, max_retries=3, default_retry_delay=60
)
def refresh_campaign_statuses(self) -> dict:
    from ooh_billing.services.campaign import refresh_campaign_statuses as refresh

    async def _run() -> dict:
        async with async_session_factory() as db:
            try:
                counts = await refresh(db, date.today())
                logger.info(
                    "Campaign statuses refreshed: %d started, %d completed",
                    counts["started"],
                    counts["completed"],
                )
                return counts
            finally:
                await db.close()

    try:
        return worker_loop().run_until_complete(_run())
    except Exception as exc:
        logger.exception("refresh_campaign_statuses failed")
        raise self.retry(exc=exc)
