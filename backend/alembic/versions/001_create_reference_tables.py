"""create companies, organization_settings, clients, media_assets tables

Revision ID: 001
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # --- companies ---
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("gstin", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # --- organization_settings ---
    op.create_table(
        "organization_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("organization_name", sa.String(length=255), nullable=True),
        sa.Column("gstin", sa.String(length=20), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("invoice_terms", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # --- clients ---
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("gstin", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("billing_address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        *_timestamps(),
    )

    # --- media_assets ---
    op.create_table(
        "media_assets",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("asset_code", sa.String(length=64), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("area", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("direction", sa.String(length=100), nullable=True),
        sa.Column("media_type", sa.String(length=100), nullable=True),
        sa.Column("illumination_type", sa.String(length=50), nullable=True),
        sa.Column("dimensions", sa.String(length=100), nullable=True),
        sa.Column("total_sqft", sa.Numeric(12, 2), nullable=True),
        sa.Column("card_rate", sa.Numeric(18, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_media_assets_asset_code", "media_assets", ["asset_code"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_media_assets_asset_code", table_name="media_assets")
    op.drop_table("media_assets")
    op.drop_table("clients")
    op.drop_table("organization_settings")
    op.drop_table("companies")
