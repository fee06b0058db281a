"""Celery task that hydrates stored invoice line items in place.

Only descriptive fields are ever written back; billed amounts are left
exactly as issued.
"""

import logging

from ooh_billing.core.config import settings
from ooh_billing.db.session import async_session_factory
from ooh_billing.workers import celery_app, worker_loop

logger = logging.getLogger(__name__)


@celery_app.task(
    name="backfill_invoice_items", bind=True, max_retries=3, default_retry_delay=300
)
def backfill_invoice_items(self, batch_size: int | None = None) -> dict:
    """Reconcile every invoice with incomplete items and capture snapshots."""
    from ooh_billing.services.invoices import backfill_invoice_items as run_backfill
    from ooh_billing.services.sources import SqlInvoiceSources

    async def _run() -> dict:
        sources = SqlInvoiceSources(async_session_factory)
        async with async_session_factory() as db:
            try:
                return await run_backfill(
                    db, sources, batch_size or settings.backfill_batch_size
                )
            finally:
                await db.close()

    try:
        return worker_loop().run_until_complete(_run())
    except Exception as exc:
        logger.exception("backfill_invoice_items failed")
        raise self.retry(exc=exc)
