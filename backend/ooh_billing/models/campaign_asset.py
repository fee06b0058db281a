from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ooh_billing.db.base import Base


class CampaignAsset(Base):
    """One media asset booked inside one campaign.

    booked_days / daily_rate / rent_amount are a cache of
    compute_rent(monthly rate, booking dates, billing_mode) and are
    rewritten on every edit.
    """

    __tablename__ = "campaign_assets"

    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    asset_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("media_assets.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Descriptive copy taken when the asset was booked
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    area: Mapped[str | None] = mapped_column(String(255), nullable=True)
    direction: Mapped[str | None] = mapped_column(String(100), nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    illumination_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    dimensions: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_sqft: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # Pricing
    card_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    negotiated_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    billing_mode: Mapped[str] = mapped_column(
        String(20), default="PRORATA_30", server_default="PRORATA_30"
    )
    booking_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    booking_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    booked_days: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    daily_rate: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    rent_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    printing_charges: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=0, server_default="0"
    )
    mounting_charges: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=0, server_default="0"
    )

    # Operations
    status: Mapped[str] = mapped_column(String(32), default="Pending", server_default="Pending")
    installation_status: Mapped[str] = mapped_column(
        String(32), default="Pending", server_default="Pending"
    )
    photos: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    assigned_mounter_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mounter_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    campaign = relationship("Campaign", back_populates="assets")
    media_asset = relationship("MediaAsset", lazy="selectin")

    @property
    def monthly_rate(self) -> Decimal:
        """Negotiated rate, falling back to the card rate."""
        if self.negotiated_rate is not None:
            return self.negotiated_rate
        return self.card_rate or Decimal("0")
