"""Invoice line-item reconciliation.

Rebuilds display fields of an invoice's line items from layered sources
without touching money that has already been billed:

1. Summary-only item sets (no asset / location identifiers at all) are
   regenerated from the campaign's bookings. This is the only path that
   computes rate / amount.
2. Snapshot hydration: descriptive fields captured at issue time, matched
   by campaign_asset_id, then asset_id, then asset_code.
3. Live hydration: current campaign-asset and media-asset records, same
   identifier priority, strictly lower priority than the snapshot.

Every pass only fills blanks. Items are never dropped or reordered and a
missing record is never an error; unmatched items are reported as gaps.
"""

import asyncio
import copy
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from ooh_billing.core.config import settings
from ooh_billing.services.pricing import round_money, to_decimal
from ooh_billing.services.sources import InvoiceSources, Record, distinct_ids

logger = logging.getLogger(__name__)

IDENTIFIER_FIELDS: tuple[str, ...] = ("campaign_asset_id", "asset_id", "asset_code")

DESCRIPTIVE_FIELDS: tuple[str, ...] = (
    "location",
    "area",
    "direction",
    "media_type",
    "illumination",
    "dimensions",
    "total_sqft",
    "hsn_sac",
    "booking_start_date",
    "booking_end_date",
)

# Only these fields are ever written by a hydration pass
FILLABLE_FIELDS: tuple[str, ...] = IDENTIFIER_FIELDS + DESCRIPTIVE_FIELDS

MONETARY_FIELDS: frozenset[str] = frozenset({
    "rate",
    "amount",
    "total",
    "rent_amount",
    "printing_charges",
    "mounting_charges",
    "sub_total",
    "gst_amount",
    "total_amount",
})

_BLANK_STRINGS = frozenset({"", "-", "N/A"})

# item field -> source record field
_SNAPSHOT_FIELDS: dict[str, str] = {
    "campaign_asset_id": "campaign_asset_id",
    "asset_id": "asset_id",
    "asset_code": "asset_code",
    "location": "location",
    "area": "area",
    "direction": "direction",
    "media_type": "media_type",
    "illumination": "illumination",
    "dimensions": "dimension_text",
    "total_sqft": "total_sqft",
    "hsn_sac": "hsn_sac",
    "booking_start_date": "booking_start_date",
    "booking_end_date": "booking_end_date",
}

_CAMPAIGN_ASSET_FIELDS: dict[str, str] = {
    "campaign_asset_id": "id",
    "asset_id": "asset_id",
    "location": "location",
    "area": "area",
    "direction": "direction",
    "media_type": "media_type",
    "illumination": "illumination_type",
    "dimensions": "dimensions",
    "total_sqft": "total_sqft",
    "booking_start_date": "booking_start_date",
    "booking_end_date": "booking_end_date",
}

_MEDIA_ASSET_FIELDS: dict[str, str] = {
    "asset_id": "id",
    "asset_code": "asset_code",
    "location": "location",
    "area": "area",
    "direction": "direction",
    "media_type": "media_type",
    "illumination": "illumination_type",
    "dimensions": "dimensions",
    "total_sqft": "total_sqft",
}


@dataclass(frozen=True)
class ReconciliationGap:
    """A line item no source could be matched to."""

    index: int
    campaign_asset_id: Any = None
    asset_id: Any = None
    asset_code: Any = None


@dataclass
class ReconciliationResult:
    items: list[dict]
    gaps: list[ReconciliationGap] = field(default_factory=list)
    regenerated: bool = False


@dataclass
class LiveRecords:
    """Everything fetched for one reconciliation, indexed for lookup."""

    snapshots: list[Record] = field(default_factory=list)
    campaign_assets: dict[Any, Record] = field(default_factory=dict)
    campaign_bookings: list[Record] = field(default_factory=list)
    media_assets: dict[Any, Record] = field(default_factory=dict)
    media_assets_by_code: dict[str, Record] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Merge helpers
# ---------------------------------------------------------------------------


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip() in _BLANK_STRINGS


def to_json_value(value: Any) -> Any:
    """Normalise record values so items stay JSON-serialisable."""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def project(record: Mapping[str, Any] | None, mapping: Mapping[str, str]) -> dict[str, Any]:
    """Rename a source record's fields to line-item field names."""
    if not record:
        return {}
    return {item_field: record.get(src_field) for item_field, src_field in mapping.items()}


def fill_gaps(current: Mapping[str, Any], *sources: Mapping[str, Any]) -> dict[str, Any]:
    """Per fillable field: keep the current value, else take the first non-blank source value."""
    merged = dict(current)
    for name in FILLABLE_FIELDS:
        if not is_blank(merged.get(name)):
            continue
        for source in sources:
            value = source.get(name)
            if not is_blank(value):
                merged[name] = to_json_value(value)
                break
    return merged


def _first_by(records: Iterable[Record], key: str) -> dict[Any, Record]:
    index: dict[Any, Record] = {}
    for record in records:
        value = record.get(key)
        if not is_blank(value):
            index.setdefault(value, record)
    return index


def _first_match(
    item: Mapping[str, Any], *lookups: tuple[str, Mapping[Any, Record]],
) -> Record | None:
    for item_field, index in lookups:
        value = item.get(item_field)
        if not is_blank(value) and value in index:
            return index[value]
    return None


# ---------------------------------------------------------------------------
# Summary-only regeneration
# ---------------------------------------------------------------------------


def is_summary_only(items: Sequence[Mapping[str, Any]]) -> bool:
    """True when no item carries any asset or location identifier."""
    if not items:
        return False
    keys = IDENTIFIER_FIELDS + ("location",)
    return all(
        not isinstance(item, Mapping) or all(is_blank(item.get(k)) for k in keys)
        for item in items
    )


def _money(value: Any) -> Decimal:
    return to_decimal(value) if not is_blank(value) else Decimal("0")


def regenerate_items(
    items: Sequence[Any],
    bookings: Sequence[Record],
    media_assets: Mapping[Any, Record],
) -> list[dict]:
    """Synthesize one line item per booking, monetary fields included."""
    regenerated: list[dict] = []
    for idx, booking in enumerate(bookings):
        existing = items[idx] if idx < len(items) and isinstance(items[idx], Mapping) else {}
        media = media_assets.get(booking.get("asset_id")) or {}

        rate = Decimal("0")
        for candidate in ("rent_amount", "negotiated_rate", "card_rate"):
            if _money(booking.get(candidate)):
                rate = _money(booking.get(candidate))
                break
        printing = _money(booking.get("printing_charges"))
        mounting = _money(booking.get("mounting_charges"))
        amount = round_money(rate + printing + mounting)

        # Summary-level money (sub_total, gst_amount, ...) never carries onto a line
        item = {
            **{k: v for k, v in existing.items() if k not in MONETARY_FIELDS},
            "sno": idx + 1,
            "description": existing.get("description") or "Display Rent",
            "quantity": 1,
            "rate": to_json_value(round_money(rate)),
            "rent_amount": to_json_value(round_money(rate)),
            "printing_charges": to_json_value(round_money(printing)),
            "mounting_charges": to_json_value(round_money(mounting)),
            "amount": to_json_value(amount),
            "total": to_json_value(amount),
            "booked_days": booking.get("booked_days"),
            "daily_rate": to_json_value(booking.get("daily_rate")),
        }
        for name in FILLABLE_FIELDS:
            item.pop(name, None)
        regenerated.append(
            fill_gaps(
                item,
                project(booking, _CAMPAIGN_ASSET_FIELDS),
                project(media, _MEDIA_ASSET_FIELDS),
            )
        )
    return regenerated


# ---------------------------------------------------------------------------
# Hydration fold
# ---------------------------------------------------------------------------


class _Lookups:
    """Identifier indexes over one reconciliation's records."""

    def __init__(self, records: LiveRecords):
        self.snapshot = (
            ("campaign_asset_id", _first_by(records.snapshots, "campaign_asset_id")),
            ("asset_id", _first_by(records.snapshots, "asset_id")),
            ("asset_code", _first_by(records.snapshots, "asset_code")),
        )
        self.campaign_asset = (
            ("campaign_asset_id", {
                **_first_by(records.campaign_bookings, "id"),
                **records.campaign_assets,
            }),
            ("asset_id", _first_by(records.campaign_bookings, "asset_id")),
        )
        self.media_asset = (
            ("asset_id", records.media_assets),
            ("asset_code", {
                **_first_by(records.media_assets.values(), "asset_code"),
                **records.media_assets_by_code,
            }),
        )


def _match_sources(
    item: Mapping[str, Any], lookups: _Lookups,
) -> tuple[Record | None, Record | None, Record | None]:
    """Find the snapshot, campaign asset and media asset for an item.

    Identifiers learnt from one record (e.g. the asset_id of a media asset
    matched by code) are used to look up the others, until nothing new turns
    up, so a second run over hydrated items matches the same records.
    """
    ids = {name: item.get(name) for name in IDENTIFIER_FIELDS}
    snapshot = campaign_asset = media_asset = None
    for _ in range(len(IDENTIFIER_FIELDS) + 1):
        snapshot = snapshot or _first_match(ids, *lookups.snapshot)
        campaign_asset = campaign_asset or _first_match(ids, *lookups.campaign_asset)
        media_asset = media_asset or _first_match(ids, *lookups.media_asset)

        learnt = fill_gaps(
            ids,
            project(snapshot, _SNAPSHOT_FIELDS),
            project(campaign_asset, _CAMPAIGN_ASSET_FIELDS),
            project(media_asset, _MEDIA_ASSET_FIELDS),
        )
        learnt = {name: learnt.get(name) for name in IDENTIFIER_FIELDS}
        if learnt == ids:
            break
        ids = learnt
    return snapshot, campaign_asset, media_asset


def hydrate_items(
    items: Sequence[Any], records: LiveRecords,
) -> tuple[list[Any], list[ReconciliationGap]]:
    """Snapshot pass then live pass over every item, gap-fill only.

    Deterministic: the outcome depends on the records, never on the order
    they were fetched in.
    """
    lookups = _Lookups(records)
    defaults = {"hsn_sac": settings.default_hsn_sac}
    hydrated: list[Any] = []
    gaps: list[ReconciliationGap] = []

    for idx, item in enumerate(items):
        if not isinstance(item, Mapping):
            hydrated.append(item)
            gaps.append(ReconciliationGap(index=idx))
            continue

        snapshot, campaign_asset, media_asset = _match_sources(item, lookups)
        merged = fill_gaps(
            item,
            project(snapshot, _SNAPSHOT_FIELDS),
            project(campaign_asset, _CAMPAIGN_ASSET_FIELDS),
            project(media_asset, _MEDIA_ASSET_FIELDS),
            defaults,
        )

        if snapshot is None and campaign_asset is None and media_asset is None:
            gaps.append(
                ReconciliationGap(
                    index=idx,
                    campaign_asset_id=item.get("campaign_asset_id"),
                    asset_id=item.get("asset_id"),
                    asset_code=item.get("asset_code"),
                )
            )
        hydrated.append(merged)

    return hydrated, gaps


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


async def _noop_list() -> list:
    return []


async def load_records(
    sources: InvoiceSources,
    invoice_id: int,
    campaign_id: int | None,
    items: Sequence[Any],
) -> LiveRecords:
    """Fetch every source once, batched by distinct identifier."""
    mappings = [i for i in items if isinstance(i, Mapping)]
    ca_ids = distinct_ids(i.get("campaign_asset_id") for i in mappings)
    asset_ids = distinct_ids(i.get("asset_id") for i in mappings)
    codes = distinct_ids(i.get("asset_code") for i in mappings)

    snapshots, campaign_assets, bookings, media_assets, media_by_code = await asyncio.gather(
        sources.fetch_item_snapshots(invoice_id),
        sources.fetch_campaign_assets(ca_ids),
        sources.fetch_campaign_assets_by_campaign(campaign_id) if campaign_id else _noop_list(),
        sources.fetch_media_assets(asset_ids),
        sources.fetch_media_assets_by_code(codes),
    )
    campaign_assets = dict(campaign_assets)
    media_assets = dict(media_assets)

    # Second round for identifiers only discovered through the first one
    known_ca = set(campaign_assets) | {b.get("id") for b in bookings}
    extra_ca = distinct_ids(s.get("campaign_asset_id") for s in snapshots) - known_ca
    linked = [*campaign_assets.values(), *bookings, *snapshots]
    extra_assets = distinct_ids(r.get("asset_id") for r in linked) - set(media_assets)
    extra_codes = distinct_ids(s.get("asset_code") for s in snapshots) - codes
    media_by_code = dict(media_by_code)

    if extra_ca or extra_assets or extra_codes:
        more_ca, more_ma, more_codes = await asyncio.gather(
            sources.fetch_campaign_assets(extra_ca),
            sources.fetch_media_assets(extra_assets),
            sources.fetch_media_assets_by_code(extra_codes),
        )
        campaign_assets.update(more_ca)
        media_assets.update(more_ma)
        media_by_code.update(more_codes)

    return LiveRecords(
        snapshots=list(snapshots),
        campaign_assets=campaign_assets,
        campaign_bookings=list(bookings),
        media_assets=media_assets,
        media_assets_by_code=media_by_code,
    )


async def reconcile_invoice_items(
    sources: InvoiceSources, invoice: Mapping[str, Any],
) -> ReconciliationResult:
    """Produce display-ready line items for a persisted invoice.

    Never writes anything; the caller decides whether to persist.
    """
    items = copy.deepcopy(list(invoice.get("items") or []))
    invoice_id = invoice.get("id")
    campaign_id = invoice.get("campaign_id")

    records = await load_records(sources, invoice_id, campaign_id, items)

    regenerated = False
    if is_summary_only(items):
        if records.campaign_bookings:
            items = regenerate_items(items, records.campaign_bookings, records.media_assets)
            regenerated = True
            logger.info(
                "Regenerated summary-only items for invoice %s from %d bookings",
                invoice_id,
                len(items),
            )
        else:
            logger.warning(
                "Invoice %s has summary-only items and no bookings to rebuild from", invoice_id
            )

    hydrated, gaps = hydrate_items(items, records)

    if gaps:
        logger.warning(
            "Invoice %s: %d line item(s) unmatched after reconciliation",
            invoice_id,
            len(gaps),
            extra={"invoice_id": invoice_id, "gap_indexes": [g.index for g in gaps]},
        )

    return ReconciliationResult(items=hydrated, gaps=gaps, regenerated=regenerated)
