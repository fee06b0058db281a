from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from ooh_billing.main import app


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client wired to the FastAPI app (no real server)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


class FakeInvoiceSources:
    """In-memory InvoiceSources that records every bulk lookup it serves."""

    def __init__(
        self,
        *,
        invoices=None,
        clients=None,
        campaigns=None,
        companies=None,
        org_settings=None,
        campaign_assets=None,
        media_assets=None,
        snapshots=None,
    ):
        self.invoices = invoices or {}
        self.clients = clients or {}
        self.campaigns = campaigns or {}
        self.companies = companies or {}
        self.org_settings = org_settings
        self.campaign_assets = campaign_assets or {}
        self.media_assets = media_assets or {}
        self.snapshots = snapshots or []
        self.calls: list[tuple[str, object]] = []

    async def get_invoice(self, invoice_id):
        return self.invoices.get(invoice_id)

    async def get_client(self, client_id):
        return self.clients.get(client_id)

    async def get_campaign(self, campaign_id):
        return self.campaigns.get(campaign_id)

    async def get_company(self, company_id):
        return self.companies.get(company_id)

    async def get_organization_settings(self):
        return self.org_settings

    async def fetch_campaign_assets(self, ids):
        self.calls.append(("campaign_assets", set(ids)))
        return {i: self.campaign_assets[i] for i in ids if i in self.campaign_assets}

    async def fetch_campaign_assets_by_campaign(self, campaign_id):
        self.calls.append(("campaign_assets_by_campaign", campaign_id))
        return [ca for ca in self.campaign_assets.values() if ca.get("campaign_id") == campaign_id]

    async def fetch_media_assets(self, ids):
        self.calls.append(("media_assets", set(ids)))
        return {i: self.media_assets[i] for i in ids if i in self.media_assets}

    async def fetch_media_assets_by_code(self, codes):
        self.calls.append(("media_assets_by_code", set(codes)))
        return {
            ma["asset_code"]: ma for ma in self.media_assets.values() if ma["asset_code"] in codes
        }

    async def fetch_item_snapshots(self, invoice_id):
        self.calls.append(("snapshots", invoice_id))
        return [s for s in self.snapshots if s.get("invoice_id") == invoice_id]


@pytest.fixture
def make_sources():
    """Factory for in-memory InvoiceSources."""
    return FakeInvoiceSources
