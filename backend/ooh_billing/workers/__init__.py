import asyncio

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging

from ooh_billing.core.config import settings
from ooh_billing.core.logging_config import setup_logging

_loop = None


def worker_loop() -> asyncio.AbstractEventLoop:
    """Return a shared event loop for all Celery worker tasks.

    All async tasks must use the same loop to avoid 'Future attached to
    a different loop' errors caused by the shared asyncpg connection pool.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


@celery_setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    # Connecting this signal stops Celery from installing its own root handler
    setup_logging()


celery_app = Celery(
    "ooh_billing_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    beat_schedule={
        "refresh-campaign-statuses-daily": {
            "task": "refresh_campaign_statuses",
            "schedule": crontab(minute=5, hour=0),
        },
        "backfill-invoice-items-nightly": {
            "task": "backfill_invoice_items",
            "schedule": crontab(minute=30, hour=2),
        },
    },
)

# Import tasks so they are registered with the celery app
import ooh_billing.workers.backfill  # noqa: F401, E402
import ooh_billing.workers.campaign_status  # noqa: F401, E402
