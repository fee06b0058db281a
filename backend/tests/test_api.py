"""Integration tests for campaign and invoice API endpoints."""

from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from ooh_billing.core.deps import get_db, get_image_cache, get_invoice_sources
from ooh_billing.main import app
from ooh_billing.models.campaign import Campaign
from ooh_billing.models.campaign_asset import CampaignAsset
from ooh_billing.services.invoice_document import ImageCache

UPDATED_AT = datetime(2025, 2, 1, 10, 0, tzinfo=timezone.utc)


def _make_booking(id: int, rent: str, printing: str = "0", mounting: str = "0") -> CampaignAsset:
    return CampaignAsset(
        id=id,
        campaign_id=5,
        asset_id=id,
        location=f"Site {id}",
        card_rate=Decimal("35000"),
        negotiated_rate=Decimal("30000"),
        billing_mode="PRORATA_30",
        booking_start_date=date(2025, 1, 1),
        booking_end_date=date(2025, 3, 31),
        booked_days=90,
        daily_rate=Decimal("1000.00"),
        rent_amount=Decimal(rent),
        printing_charges=Decimal(printing),
        mounting_charges=Decimal(mounting),
        status="Installed",
        installation_status="Completed",
        updated_at=UPDATED_AT,
    )


def _make_campaign(bookings, **overrides) -> Campaign:
    values = dict(
        id=5,
        client_id=3,
        company_id=2,
        campaign_name="Summer Launch",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 3, 31),
        status="Running",
        subtotal=Decimal("80000"),
        printing_total=Decimal("5000"),
        mounting_total=Decimal("3000"),
        total_amount=Decimal("88000"),
        gst_percent=Decimal("18"),
        gst_amount=Decimal("15840"),
        grand_total=Decimal("93000"),
        manual_discount_amount=Decimal("0"),
        assets=bookings,
    )
    values.update(overrides)
    return Campaign(**values)


def _mock_db(records: dict) -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    db.get = AsyncMock(side_effect=lambda model, record_id: records.get(model))
    return db


@pytest.fixture
def override_db():
    """Install a mocked session for get_db; returns a setter taking {model: record}."""

    def install(records: dict) -> AsyncMock:
        db = _mock_db(records)

        async def _get_db():
            yield db

        app.dependency_overrides[get_db] = _get_db
        return db

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def override_sources(make_sources):
    def install(**data):
        sources = make_sources(**data)
        app.dependency_overrides[get_invoice_sources] = lambda: sources
        app.dependency_overrides[get_image_cache] = lambda: ImageCache(AsyncMock(), ttl=60)
        return sources

    yield install
    app.dependency_overrides.clear()


def _invoice_data():
    return dict(
        invoices={
            1: {
                "id": 1,
                "invoice_number": "INV/2025/001",
                "client_id": 3,
                "campaign_id": None,
                "company_id": 2,
                "invoice_date": date(2025, 2, 1),
                "items": [{"asset_id": 7, "amount": 15000}, {"asset_code": "GONE-404"}],
            }
        },
        clients={3: {"id": 3, "name": "Acme Foods"}},
        companies={2: {"id": 2, "name": "Outdoor Co", "logo_url": "data:image/png;base64,AAAA"}},
        snapshots=[{"invoice_id": 1, "asset_id": 7, "location": "Main Road"}],
    )


class TestCampaignTotals:
    @pytest.mark.asyncio
    async def test_totals_and_billing_periods(self, client: AsyncClient, override_db):
        bookings = [_make_booking(11, "31000.00", "5000", "3000"), _make_booking(12, "15000.50")]
        campaign = _make_campaign(
            bookings, start_date=date(2025, 1, 15), end_date=date(2025, 3, 10)
        )
        override_db({Campaign: campaign})

        resp = await client.get("/api/campaigns/5/totals")

        assert resp.status_code == 200
        data = resp.json()
        assert data["campaign_id"] == 5
        assert Decimal(data["subtotal"]) == Decimal("46000.50")
        assert Decimal(data["total_amount"]) == Decimal("54001")
        assert Decimal(data["gst_amount"]) == Decimal("9720")
        assert Decimal(data["grand_total"]) == Decimal("63721")
        assert data["total_assets"] == 2
        assert [p["days_in_period"] for p in data["billing_periods"]] == [17, 30, 10]

    @pytest.mark.asyncio
    async def test_missing_campaign(self, client: AsyncClient, override_db):
        override_db({})

        resp = await client.get("/api/campaigns/404/totals")

        assert resp.status_code == 404
        assert resp.json() == {"detail": "Campaign not found"}


class TestUpdateCampaignAsset:
    @pytest.mark.asyncio
    async def test_patch_reprices_booking(self, client: AsyncClient, override_db):
        booking = _make_booking(11, "90000.00", "5000", "3000")
        campaign = _make_campaign([booking])
        db = override_db({CampaignAsset: booking, Campaign: campaign})

        resp = await client.patch(
            "/api/campaign-assets/11", json={"booking_end_date": "2025-01-15"}
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["booked_days"] == 15
        assert Decimal(data["rent_amount"]) == Decimal("15000.00")
        assert campaign.grand_total == Decimal("27140")
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_patch_rejects_inverted_range(self, client: AsyncClient, override_db):
        booking = _make_booking(11, "90000.00")
        override_db({CampaignAsset: booking, Campaign: _make_campaign([booking])})

        resp = await client.patch(
            "/api/campaign-assets/11", json={"booking_end_date": "2024-12-01"}
        )

        assert resp.status_code == 422
        assert "before start" in resp.json()["detail"]


class TestRenewal:
    @pytest.mark.asyncio
    async def test_preview_extend(self, client: AsyncClient, override_db):
        db = override_db({Campaign: _make_campaign([_make_booking(11, "90000.00")])})

        resp = await client.post(
            "/api/campaigns/5/renewal/preview",
            json={"action": "extend", "duration_option": "1_month"},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["plan"]["new_start"] == "2025-03-31"
        assert data["plan"]["new_end"] == "2025-04-30"
        assert data["plan"]["extension_days"] == 30
        assert Decimal(data["estimate"]["renewal_amount"]) == Decimal("31000")
        assert Decimal(data["estimate"]["daily_rate"]) == Decimal("1033.33")
        assert data["estimate"]["degraded"] is False
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_preview_copy_new_reports_carried_costs(self, client: AsyncClient, override_db):
        override_db({Campaign: _make_campaign([_make_booking(11, "90000.00")])})

        resp = await client.post(
            "/api/campaigns/5/renewal/preview",
            json={
                "action": "copy_new",
                "new_start_date": "2025-04-01",
                "new_end_date": "2025-05-15",
            },
        )

        assert resp.status_code == 200
        estimate = resp.json()["estimate"]
        assert Decimal(estimate["subtotal"]) == Decimal("40000")
        assert Decimal(estimate["grand_total"]) == Decimal("56640")
        assert estimate["warnings"] == ["one_time_costs_carried_over"]
        assert estimate["degraded"] is True

    @pytest.mark.asyncio
    async def test_invalid_custom_date(self, client: AsyncClient, override_db):
        override_db({Campaign: _make_campaign([])})

        resp = await client.post(
            "/api/campaigns/5/renewal/preview",
            json={"action": "extend", "duration_option": "custom", "custom_end_date": "2025-03-01"},
        )

        assert resp.status_code == 422
        assert "must be after" in resp.json()["detail"]

    @pytest.mark.asyncio
    @patch("ooh_billing.api.campaigns.check_idempotency", new_callable=AsyncMock, return_value=True)
    async def test_submit_extend(self, mock_idem, client: AsyncClient, override_db):
        booking = _make_booking(11, "90000.00")
        campaign = _make_campaign([booking])
        db = override_db({Campaign: campaign})

        resp = await client.post(
            "/api/campaigns/5/renewal",
            json={"action": "extend", "duration_option": "1_month", "notes": "April too"},
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["campaign_id"] == 5
        assert data["source_campaign_id"] == 5
        assert data["end_date"] == "2025-04-30"
        assert data["status"] == "Running"
        assert booking.booking_end_date == date(2025, 4, 30)
        mock_idem.assert_awaited_once_with("renewal:5:extend:2025-04-30", ttl=60)
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("ooh_billing.api.campaigns.check_idempotency", new_callable=AsyncMock, return_value=False)
    async def test_duplicate_submit_conflicts(self, mock_idem, client: AsyncClient, override_db):
        campaign = _make_campaign([_make_booking(11, "90000.00")])
        db = override_db({Campaign: campaign})

        resp = await client.post("/api/campaigns/5/renewal", json={"action": "extend"})

        assert resp.status_code == 409
        assert campaign.end_date == date(2025, 3, 31)
        db.commit.assert_not_awaited()


class TestInvoiceEndpoints:
    @pytest.mark.asyncio
    async def test_items_are_hydrated_with_gaps(self, client: AsyncClient, override_sources):
        override_sources(**_invoice_data())

        resp = await client.get("/api/invoices/1/items")

        assert resp.status_code == 200
        data = resp.json()
        assert data["invoice_id"] == 1
        assert data["regenerated"] is False
        assert data["items"][0]["location"] == "Main Road"
        assert data["items"][0]["amount"] == 15000
        assert data["gaps"] == [
            {"index": 1, "campaign_asset_id": None, "asset_id": None, "asset_code": "GONE-404"}
        ]

    @pytest.mark.asyncio
    async def test_missing_invoice(self, client: AsyncClient, override_sources):
        override_sources(**_invoice_data())

        resp = await client.get("/api/invoices/99/items")

        assert resp.status_code == 404
        assert resp.json() == {"detail": "Invoice not found"}

    @pytest.mark.asyncio
    async def test_document_data(self, client: AsyncClient, override_sources):
        override_sources(**_invoice_data())

        resp = await client.get("/api/invoices/1/document-data")

        assert resp.status_code == 200
        data = resp.json()
        assert data["invoice"]["invoice_date"] == "2025-02-01"
        assert data["client"]["name"] == "Acme Foods"
        assert data["campaign"] is None
        assert data["logo"] == "data:image/png;base64,AAAA"
        assert len(data["items"]) == 2
        assert data["gaps"][0]["index"] == 1

    @pytest.mark.asyncio
    async def test_render_without_renderer(self, client: AsyncClient, override_sources):
        override_sources(**_invoice_data())

        resp = await client.post("/api/invoices/1/render", params={"template": "classic"})

        assert resp.status_code == 501

    @pytest.mark.asyncio
    async def test_render_with_registered_renderer(self, client: AsyncClient, override_sources):
        override_sources(**_invoice_data())
        renderer = MagicMock()
        renderer.render.return_value = b"%PDF-1.7"
        app.state.renderers = {"classic": renderer}
        try:
            resp = await client.post("/api/invoices/1/render", params={"template": "classic"})
        finally:
            app.state.renderers = {}

        assert resp.status_code == 200
        assert resp.content == b"%PDF-1.7"
        assert resp.headers["content-type"] == "application/octet-stream"
