from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ooh_billing.db.base import Base


class Company(Base):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    gstin: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)


class OrganizationSettings(Base):
    """Tenant-wide fallbacks used when a company record is incomplete."""

    __tablename__ = "organization_settings"

    organization_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gstin: Mapped[str | None] = mapped_column(String(20), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    invoice_terms: Mapped[str | None] = mapped_column(Text, nullable=True)
