from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ooh_billing.db.base import Base


class InvoiceItemSnapshot(Base):
    """Descriptive fields of one invoice line as they were at issue time."""

    __tablename__ = "invoice_item_snapshots"

    invoice_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    campaign_asset_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    asset_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    asset_code: Mapped[str | None] = mapped_column(String(64), nullable=True)

    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    area: Mapped[str | None] = mapped_column(String(255), nullable=True)
    direction: Mapped[str | None] = mapped_column(String(100), nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    illumination: Mapped[str | None] = mapped_column(String(50), nullable=True)
    dimension_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_sqft: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    hsn_sac: Mapped[str | None] = mapped_column(String(16), nullable=True)
    booking_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    booking_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index("ix_invoice_item_snapshots_invoice_asset", "invoice_id", "asset_id"),
    )
