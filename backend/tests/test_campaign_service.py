"""Tests for campaign service: booking edits, extension, copy and status lifecycle."""

from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from ooh_billing.api.schemas import BookingUpdate
from ooh_billing.models.campaign import Campaign
from ooh_billing.models.campaign_asset import CampaignAsset
from ooh_billing.models.campaign_timeline import CampaignTimelineEvent
from ooh_billing.services.campaign import (
    apply_extension,
    create_campaign_copy,
    get_campaign,
    preview_renewal,
    refresh_campaign_statuses,
    reprice_booking,
    update_booking,
)
from ooh_billing.services.pricing import InvalidRangeError
from ooh_billing.services.sources import RecordNotFoundError


def _make_booking(id: int, asset_id: int | None, **overrides) -> CampaignAsset:
    values = dict(
        id=id,
        campaign_id=5,
        asset_id=asset_id,
        location=f"Site {id}",
        card_rate=Decimal("35000"),
        negotiated_rate=Decimal("30000"),
        billing_mode="PRORATA_30",
        booking_start_date=date(2025, 1, 1),
        booking_end_date=date(2025, 3, 31),
        booked_days=90,
        daily_rate=Decimal("1000.00"),
        rent_amount=Decimal("90000.00"),
        printing_charges=Decimal("5000"),
        mounting_charges=Decimal("3000"),
        status="Installed",
        installation_status="Completed",
        photos={"geo": "https://cdn.example.com/p1.jpg"},
        mounter_name="Ravi",
        completed_at=datetime(2025, 1, 3, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return CampaignAsset(**values)


def _make_campaign(bookings: list[CampaignAsset], **overrides) -> Campaign:
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


def _mock_db(get_result=None):
    db = AsyncMock()
    db.add = MagicMock()
    db.get = AsyncMock(return_value=get_result)
    return db


class TestRepriceBooking:
    def test_uses_negotiated_rate(self):
        booking = _make_booking(11, 7, booking_end_date=date(2025, 1, 31))
        reprice_booking(booking)
        assert booking.booked_days == 31
        assert booking.daily_rate == Decimal("1000.00")
        assert booking.rent_amount == Decimal("31000.00")

    def test_falls_back_to_card_rate(self):
        booking = _make_booking(
            11, 7, negotiated_rate=None, card_rate=Decimal("15000"), booking_end_date=date(2025, 1, 2)
        )
        reprice_booking(booking)
        assert booking.rent_amount == Decimal("1000.00")

    def test_daily_mode_keeps_entered_day_rate(self):
        booking = _make_booking(
            11, 7, billing_mode="DAILY", daily_rate=Decimal("1500"), booking_end_date=date(2025, 1, 4)
        )
        reprice_booking(booking)
        assert booking.rent_amount == Decimal("6000.00")


class TestGetCampaign:
    @pytest.mark.asyncio
    async def test_missing_campaign_raises(self):
        with pytest.raises(RecordNotFoundError):
            await get_campaign(_mock_db(None), 404)


class TestUpdateBooking:
    @pytest.mark.asyncio
    async def test_reprices_and_refreshes_totals(self):
        booking = _make_booking(11, 7)
        campaign = _make_campaign([booking])
        db = _mock_db(campaign)

        result = await update_booking(db, booking, BookingUpdate(booking_end_date=date(2025, 1, 15)))

        assert result.booked_days == 15
        assert result.rent_amount == Decimal("15000.00")
        assert campaign.subtotal == Decimal("15000.00")
        assert campaign.total_amount == Decimal("23000")
        assert campaign.gst_amount == Decimal("4140")
        assert campaign.grand_total == Decimal("27140")
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_inverted_range_is_not_committed(self):
        booking = _make_booking(11, 7)
        db = _mock_db(_make_campaign([booking]))

        with pytest.raises(InvalidRangeError):
            await update_booking(db, booking, BookingUpdate(booking_end_date=date(2024, 12, 1)))
        db.commit.assert_not_awaited()


class TestApplyExtension:
    @pytest.mark.asyncio
    async def test_extend_reopens_completed_campaign(self):
        bookings = [_make_booking(11, 7), _make_booking(12, 8)]
        campaign = _make_campaign(bookings, status="Completed")
        db = _mock_db()
        plan, estimate = preview_renewal(campaign, "extend", "1_month")

        await apply_extension(db, campaign, plan, estimate, notes="Client asked for April")

        assert campaign.end_date == date(2025, 4, 30)
        assert campaign.status == "Running"
        for booking in bookings:
            assert booking.booking_end_date == date(2025, 4, 30)
            assert booking.booked_days == 120
            assert booking.rent_amount == Decimal("120000.00")
            # extend keeps the installation as it is
            assert booking.installation_status == "Completed"
        assert campaign.subtotal == Decimal("240000.00")

        event = db.add.call_args.args[0]
        assert isinstance(event, CampaignTimelineEvent)
        assert event.event_type == "campaign_extended"
        assert event.details["previous_end_date"] == "2025-03-31"
        assert event.details["new_end_date"] == "2025-04-30"
        assert event.details["extension_days"] == 30
        assert event.event_description.endswith("Client asked for April")
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_renew_resets_installation_state(self):
        booking = _make_booking(11, 7)
        campaign = _make_campaign([booking])
        db = _mock_db()
        plan, estimate = preview_renewal(campaign, "renew", "1_month", today=date(2025, 3, 1))

        await apply_extension(db, campaign, plan, estimate)

        assert campaign.status == "Running"
        assert booking.installation_status == "Pending"
        assert booking.photos is None
        assert booking.completed_at is None
        assert db.add.call_args.args[0].event_type == "campaign_renewed"

    @pytest.mark.asyncio
    async def test_rejects_copy_plan(self):
        campaign = _make_campaign([])
        plan, estimate = preview_renewal(campaign, "copy_new", "1_month")
        with pytest.raises(ValueError):
            await apply_extension(_mock_db(), campaign, plan, estimate)


class TestCreateCampaignCopy:
    @pytest.mark.asyncio
    async def test_copies_once_per_asset_and_closes_source(self):
        bookings = [
            _make_booking(11, 7),
            _make_booking(12, 7, location="Duplicate of 7"),
            _make_booking(13, 8),
        ]
        campaign = _make_campaign(bookings)
        db = _mock_db()
        plan, estimate = preview_renewal(
            campaign, "copy_new", "1_month", new_start=date(2025, 4, 1), new_end=date(2025, 5, 15)
        )

        new_campaign = await create_campaign_copy(db, campaign, plan, estimate)

        assert new_campaign.campaign_name == "Summer Launch (Renewal)"
        assert new_campaign.status == "Upcoming"
        assert new_campaign.created_from == "copy:5"
        assert new_campaign.start_date == date(2025, 4, 1)
        assert new_campaign.end_date == date(2025, 5, 15)
        assert new_campaign.subtotal == Decimal("40000")
        assert new_campaign.grand_total == Decimal("56640")
        assert campaign.status == "Completed"

        copied = new_campaign.assets
        assert [b.asset_id for b in copied] == [7, 8]
        for booking in copied:
            assert booking.booking_start_date == date(2025, 4, 1)
            assert booking.booking_end_date == date(2025, 5, 15)
            assert booking.booked_days == 45
            assert booking.rent_amount == Decimal("45000.00")
            assert booking.installation_status == "Pending"
            assert booking.photos is None
            assert booking.mounter_name is None
            assert booking.printing_charges == Decimal("5000")

        assert db.add.call_args_list[0].args[0] is new_campaign
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_exclude_policy_drops_one_time_charges(self):
        campaign = _make_campaign([_make_booking(11, 7)])
        plan, estimate = preview_renewal(
            campaign, "copy_new", "1_month", one_time_cost_policy="exclude"
        )

        new_campaign = await create_campaign_copy(_mock_db(), campaign, plan, estimate, "exclude")

        assert new_campaign.assets[0].printing_charges == 0
        assert new_campaign.printing_total == Decimal("0")

    @pytest.mark.asyncio
    async def test_scale_policy_scales_booking_charges(self):
        campaign = _make_campaign([_make_booking(11, 7), _make_booking(13, 8)])
        plan, estimate = preview_renewal(
            campaign,
            "copy_new",
            "1_month",
            new_start=date(2025, 4, 1),
            new_end=date(2025, 5, 15),
            one_time_cost_policy="scale",
        )

        new_campaign = await create_campaign_copy(_mock_db(), campaign, plan, estimate, "scale")

        for booking in new_campaign.assets:
            assert booking.printing_charges == Decimal("2500")
            assert booking.mounting_charges == Decimal("1500")
        assert new_campaign.printing_total == Decimal("2500")
        assert new_campaign.mounting_total == Decimal("1500")

    @pytest.mark.asyncio
    async def test_copy_without_day_span_carries_source_financials(self):
        campaign = _make_campaign(
            [_make_booking(11, 7)], start_date=date(2025, 3, 31), end_date=date(2025, 3, 1)
        )
        db = _mock_db()
        plan, estimate = preview_renewal(
            campaign, "copy_new", "1_month", new_start=date(2025, 4, 1), new_end=date(2025, 5, 15)
        )
        assert estimate.grand_total is None

        new_campaign = await create_campaign_copy(db, campaign, plan, estimate)

        assert new_campaign.subtotal == Decimal("80000")
        assert new_campaign.printing_total == Decimal("5000")
        assert new_campaign.mounting_total == Decimal("3000")
        assert new_campaign.total_amount == Decimal("88000")
        assert new_campaign.gst_amount == Decimal("15840")
        assert new_campaign.grand_total == Decimal("103840")
        assert new_campaign.assets[0].printing_charges == Decimal("5000")

        event = db.add.call_args_list[-1].args[0]
        assert isinstance(event, CampaignTimelineEvent)
        assert event.details["warnings"] == ["no_day_rate"]


class TestRefreshCampaignStatuses:
    @pytest.mark.asyncio
    async def test_runs_both_transitions(self):
        db = AsyncMock()
        db.execute = AsyncMock(side_effect=[MagicMock(rowcount=2), MagicMock(rowcount=1)])

        counts = await refresh_campaign_statuses(db, date(2025, 4, 1))

        assert counts == {"started": 2, "completed": 1}
        assert db.execute.await_count == 2
        db.commit.assert_awaited_once()
