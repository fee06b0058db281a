from datetime import date
from decimal import Decimal

from sqlalchemy import JSON, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ooh_billing.db.base import Base


class Invoice(Base):
    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    campaign_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True, index=True
    )
    company_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    invoice_type: Mapped[str] = mapped_column(
        String(32), default="TAX_INVOICE", server_default="TAX_INVOICE"
    )
    status: Mapped[str] = mapped_column(String(32), default="Draft", server_default="Draft")
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    invoice_period_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    invoice_period_end: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Line items as issued; rate/amount inside are frozen once set
    items: Mapped[list | None] = mapped_column(JSON, nullable=True)

    sub_total: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    gst_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=18, server_default="18")
    gst_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    balance_due: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, server_default="0")
    hsn_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
