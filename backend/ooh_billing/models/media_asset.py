from decimal import Decimal

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ooh_billing.db.base import Base


class MediaAsset(Base):
    """Master record of a physical advertising site (hoarding, unipole, ...)."""

    __tablename__ = "media_assets"

    asset_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    area: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    direction: Mapped[str | None] = mapped_column(String(100), nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    illumination_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    dimensions: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_sqft: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    card_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
