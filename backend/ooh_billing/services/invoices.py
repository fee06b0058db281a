"""Persisted side of invoice reconciliation: snapshots and backfill."""

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ooh_billing.models.invoice import Invoice
from ooh_billing.models.invoice_item_snapshot import InvoiceItemSnapshot
from ooh_billing.services.pricing import to_decimal
from ooh_billing.services.reconciler import (
    DESCRIPTIVE_FIELDS,
    IDENTIFIER_FIELDS,
    MONETARY_FIELDS,
    is_blank,
    reconcile_invoice_items,
)
from ooh_billing.services.sources import InvoiceSources, to_record

logger = logging.getLogger(__name__)


def _identity(values: Mapping[str, Any]) -> tuple:
    return tuple(None if is_blank(values.get(k)) else values.get(k) for k in IDENTIFIER_FIELDS)


def _as_date(value: Any) -> date | None:
    if is_blank(value):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _clean(value: Any) -> Any:
    return None if is_blank(value) else value


def needs_hydration(items: Sequence[Any] | None) -> bool:
    """True when any line item is missing a descriptive field."""
    return any(
        isinstance(item, Mapping) and any(is_blank(item.get(f)) for f in DESCRIPTIVE_FIELDS)
        for item in items or []
    )


def monetary_unchanged(before: Sequence[Any], after: Sequence[Any]) -> bool:
    """Hydration must leave every billed amount exactly as it was."""
    if len(before) != len(after):
        return False
    for old, new in zip(before, after):
        if not isinstance(old, Mapping):
            if old != new:
                return False
            continue
        for name in MONETARY_FIELDS:
            if old.get(name) != new.get(name):
                return False
    return True


async def capture_item_snapshots(db: AsyncSession, invoice: Invoice) -> int:
    """Record descriptive fields of identified items that have no snapshot yet.

    Flushes but does not commit; returns the number of snapshots added.
    """
    result = await db.execute(
        select(InvoiceItemSnapshot).where(InvoiceItemSnapshot.invoice_id == invoice.id)
    )
    existing = {_identity(to_record(s)) for s in result.scalars().all()}

    added = 0
    for item in invoice.items or []:
        if not isinstance(item, Mapping):
            continue
        key = _identity(item)
        if all(v is None for v in key) or key in existing:
            continue
        sqft = _clean(item.get("total_sqft"))
        db.add(
            InvoiceItemSnapshot(
                invoice_id=invoice.id,
                campaign_asset_id=key[0],
                asset_id=key[1],
                asset_code=key[2],
                location=_clean(item.get("location")),
                area=_clean(item.get("area")),
                direction=_clean(item.get("direction")),
                media_type=_clean(item.get("media_type")),
                illumination=_clean(item.get("illumination")),
                dimension_text=_clean(item.get("dimensions")),
                total_sqft=to_decimal(sqft) if sqft is not None else None,
                hsn_sac=_clean(item.get("hsn_sac")),
                booking_start_date=_as_date(item.get("booking_start_date")),
                booking_end_date=_as_date(item.get("booking_end_date")),
            )
        )
        existing.add(key)
        added += 1

    if added:
        await db.flush()
    return added


async def backfill_invoice(db: AsyncSession, sources: InvoiceSources, invoice: Invoice) -> bool:
    """Persist descriptive hydration for one invoice; returns True if items were rewritten."""
    original = list(invoice.items or [])
    result = await reconcile_invoice_items(sources, to_record(invoice))

    written = False
    if result.regenerated:
        # Regenerated sets carry recomputed money; leave the billed items alone
        logger.warning("Invoice %s is summary-only; items not written back", invoice.id)
    elif result.items != original:
        if monetary_unchanged(original, result.items):
            invoice.items = result.items
            written = True
        else:
            logger.error("Invoice %s: hydration altered monetary fields, skipping", invoice.id)

    await capture_item_snapshots(db, invoice)
    return written


async def backfill_invoice_items(
    db: AsyncSession, sources: InvoiceSources, batch_size: int
) -> dict[str, int]:
    """Walk all invoices in id order and backfill those with incomplete items."""
    stats = {"scanned": 0, "updated": 0, "failed": 0}
    last_id = 0
    while True:
        result = await db.execute(
            select(Invoice.id, Invoice.items)
            .where(Invoice.id > last_id)
            .order_by(Invoice.id)
            .limit(batch_size)
        )
        rows = result.all()
        if not rows:
            break

        for invoice_id, items in rows:
            last_id = invoice_id
            stats["scanned"] += 1
            if not needs_hydration(items):
                continue
            try:
                invoice = await db.get(Invoice, invoice_id)
                if await backfill_invoice(db, sources, invoice):
                    stats["updated"] += 1
                await db.commit()
            except Exception:
                await db.rollback()
                stats["failed"] += 1
                logger.exception("Failed to backfill invoice %d", invoice_id)

    logger.info("Invoice backfill finished: %s", stats)
    return stats
