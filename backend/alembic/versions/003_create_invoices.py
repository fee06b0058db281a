"""create invoices and invoice_item_snapshots tables

Revision ID: 003
Revises: 002
Create Date: 2026-01-07 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- invoices ---
    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("campaign_id", sa.Integer(), sa.ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("invoice_type", sa.String(length=32), server_default="TAX_INVOICE", nullable=False),
        sa.Column("status", sa.String(length=32), server_default="Draft", nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("invoice_period_start", sa.Date(), nullable=True),
        sa.Column("invoice_period_end", sa.Date(), nullable=True),
        sa.Column("items", sa.JSON(), nullable=True),
        sa.Column("sub_total", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("gst_percent", sa.Numeric(5, 2), server_default="18", nullable=False),
        sa.Column("gst_amount", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("balance_due", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("hsn_code", sa.String(length=16), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # --- invoice_item_snapshots ---
    op.create_table(
        "invoice_item_snapshots",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("campaign_asset_id", sa.Integer(), nullable=True),
        sa.Column("asset_id", sa.Integer(), nullable=True),
        sa.Column("asset_code", sa.String(length=64), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("area", sa.String(length=255), nullable=True),
        sa.Column("direction", sa.String(length=100), nullable=True),
        sa.Column("media_type", sa.String(length=100), nullable=True),
        sa.Column("illumination", sa.String(length=50), nullable=True),
        sa.Column("dimension_text", sa.String(length=100), nullable=True),
        sa.Column("total_sqft", sa.Numeric(12, 2), nullable=True),
        sa.Column("hsn_sac", sa.String(length=16), nullable=True),
        sa.Column("booking_start_date", sa.Date(), nullable=True),
        sa.Column("booking_end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_invoice_item_snapshots_invoice_asset",
        "invoice_item_snapshots",
        ["invoice_id", "asset_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_invoice_item_snapshots_invoice_asset", table_name="invoice_item_snapshots")
    op.drop_table("invoice_item_snapshots")
    op.drop_table("invoices")
