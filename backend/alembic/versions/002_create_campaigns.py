"""create campaigns, campaign_assets, campaign_timeline tables

Revision ID: 002
Revises: 001
Create Date: 2026-01-06 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(18, 2), server_default="0", nullable=False)


def upgrade() -> None:
    # --- campaigns ---
    op.create_table(
        "campaigns",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("campaign_name", sa.String(length=255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=32), server_default="Upcoming", nullable=False, index=True),
        sa.Column("billing_cycle", sa.String(length=32), nullable=True),
        _money("subtotal"),
        _money("printing_total"),
        _money("mounting_total"),
        _money("total_amount"),
        sa.Column("gst_percent", sa.Numeric(5, 2), server_default="18", nullable=False),
        _money("gst_amount"),
        _money("grand_total"),
        _money("manual_discount_amount"),
        sa.Column("created_from", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # --- campaign_assets ---
    op.create_table(
        "campaign_assets",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("campaign_id", sa.Integer(), sa.ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("asset_id", sa.Integer(), sa.ForeignKey("media_assets.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("area", sa.String(length=255), nullable=True),
        sa.Column("direction", sa.String(length=100), nullable=True),
        sa.Column("media_type", sa.String(length=100), nullable=True),
        sa.Column("illumination_type", sa.String(length=50), nullable=True),
        sa.Column("dimensions", sa.String(length=100), nullable=True),
        sa.Column("total_sqft", sa.Numeric(12, 2), nullable=True),
        sa.Column("card_rate", sa.Numeric(18, 2), nullable=True),
        sa.Column("negotiated_rate", sa.Numeric(18, 2), nullable=True),
        sa.Column("billing_mode", sa.String(length=20), server_default="PRORATA_30", nullable=False),
        sa.Column("booking_start_date", sa.Date(), nullable=False),
        sa.Column("booking_end_date", sa.Date(), nullable=False),
        sa.Column("booked_days", sa.Integer(), server_default="1", nullable=False),
        _money("daily_rate"),
        _money("rent_amount"),
        _money("printing_charges"),
        _money("mounting_charges"),
        sa.Column("status", sa.String(length=32), server_default="Pending", nullable=False),
        sa.Column("installation_status", sa.String(length=32), server_default="Pending", nullable=False),
        sa.Column("photos", sa.JSON(), nullable=True),
        sa.Column("assigned_mounter_id", sa.Integer(), nullable=True),
        sa.Column("mounter_name", sa.String(length=255), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # --- campaign_timeline ---
    op.create_table(
        "campaign_timeline",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("campaign_id", sa.Integer(), sa.ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False, index=True),
        sa.Column("event_title", sa.String(length=255), nullable=False),
        sa.Column("event_description", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_campaign_timeline_campaign_type", "campaign_timeline", ["campaign_id", "event_type"]
    )


def downgrade() -> None:
    op.drop_index("ix_campaign_timeline_campaign_type", table_name="campaign_timeline")
    op.drop_table("campaign_timeline")
    op.drop_table("campaign_assets")
    op.drop_table("campaigns")
