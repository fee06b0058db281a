from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ooh_billing.db.base import Base


class Campaign(Base):
    __tablename__ = "campaigns"

    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    campaign_name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), default="Upcoming", server_default="Upcoming", index=True
    )
    billing_cycle: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Financial snapshot
    subtotal: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    printing_total: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    mounting_total: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    gst_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=18, server_default="18")
    gst_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    grand_total: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    manual_discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=0, server_default="0"
    )

    created_from: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    client = relationship("Client", lazy="selectin")
    assets = relationship(
        "CampaignAsset",
        back_populates="campaign",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="CampaignAsset.id",
    )
