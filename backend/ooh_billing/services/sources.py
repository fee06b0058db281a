"""Read-side storage collaborator for invoice reconciliation.

All bulk lookups take a set of identifiers and return a mapping of the
records found; missing identifiers are simply absent. Records are plain
dicts so the reconciler stays independent of the ORM.
"""

from collections.abc import Iterable
from typing import Any, Protocol

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ooh_billing.models.campaign import Campaign
from ooh_billing.models.campaign_asset import CampaignAsset
from ooh_billing.models.client import Client
from ooh_billing.models.company import Company, OrganizationSettings
from ooh_billing.models.invoice import Invoice
from ooh_billing.models.invoice_item_snapshot import InvoiceItemSnapshot
from ooh_billing.models.media_asset import MediaAsset

Record = dict[str, Any]


class RecordNotFoundError(LookupError):
    """Raised when a record the caller cannot proceed without is missing."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class InvoiceSources(Protocol):
    async def get_invoice(self, invoice_id: int) -> Record | None: ...

    async def get_client(self, client_id: int) -> Record | None: ...

    async def get_campaign(self, campaign_id: int) -> Record | None: ...

    async def get_company(self, company_id: int) -> Record | None: ...

    async def get_organization_settings(self) -> Record | None: ...

    async def fetch_campaign_assets(self, ids: set[int]) -> dict[int, Record]: ...

    async def fetch_campaign_assets_by_campaign(self, campaign_id: int) -> list[Record]: ...

    async def fetch_media_assets(self, ids: set[int]) -> dict[int, Record]: ...

    async def fetch_media_assets_by_code(self, codes: set[str]) -> dict[str, Record]: ...

    async def fetch_item_snapshots(self, invoice_id: int) -> list[Record]: ...


def to_record(obj: Any) -> Record:
    """Column values of an ORM instance as a dict."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


class SqlInvoiceSources:
    """InvoiceSources backed by PostgreSQL.

    Each read opens its own short-lived session: an AsyncSession cannot
    run statements concurrently, and the reconciler gathers reads.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _one(self, model: type, record_id: int | None) -> Record | None:
        if record_id is None:
            return None
        async with self._session_factory() as db:
            obj = await db.get(model, record_id)
            return to_record(obj) if obj is not None else None

    async def _many(self, stmt) -> list[Record]:
        async with self._session_factory() as db:
            result = await db.execute(stmt)
            return [to_record(obj) for obj in result.scalars().all()]

    async def get_invoice(self, invoice_id: int) -> Record | None:
        return await self._one(Invoice, invoice_id)

    async def get_client(self, client_id: int) -> Record | None:
        return await self._one(Client, client_id)

    async def get_campaign(self, campaign_id: int) -> Record | None:
        return await self._one(Campaign, campaign_id)

    async def get_company(self, company_id: int) -> Record | None:
        return await self._one(Company, company_id)

    async def get_organization_settings(self) -> Record | None:
        rows = await self._many(
            select(OrganizationSettings).order_by(OrganizationSettings.id).limit(1)
        )
        return rows[0] if rows else None

    async def fetch_campaign_assets(self, ids: set[int]) -> dict[int, Record]:
        if not ids:
            return {}
        rows = await self._many(select(CampaignAsset).where(CampaignAsset.id.in_(ids)))
        return {row["id"]: row for row in rows}

    async def fetch_campaign_assets_by_campaign(self, campaign_id: int) -> list[Record]:
        return await self._many(
            select(CampaignAsset)
            .where(CampaignAsset.campaign_id == campaign_id)
            .order_by(CampaignAsset.id)
        )

    async def fetch_media_assets(self, ids: set[int]) -> dict[int, Record]:
        if not ids:
            return {}
        rows = await self._many(select(MediaAsset).where(MediaAsset.id.in_(ids)))
        return {row["id"]: row for row in rows}

    async def fetch_media_assets_by_code(self, codes: set[str]) -> dict[str, Record]:
        if not codes:
            return {}
        rows = await self._many(select(MediaAsset).where(MediaAsset.asset_code.in_(codes)))
        return {row["asset_code"]: row for row in rows}

    async def fetch_item_snapshots(self, invoice_id: int) -> list[Record]:
        return await self._many(
            select(InvoiceItemSnapshot)
            .where(InvoiceItemSnapshot.invoice_id == invoice_id)
            .order_by(InvoiceItemSnapshot.id)
        )


def distinct_ids(values: Iterable[Any]) -> set:
    """Deduplicated, non-empty identifiers."""
    return {v for v in values if v not in (None, "")}
