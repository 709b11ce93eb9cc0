from decimal import Decimal
from sqlalchemy import String, DateTime, Date, Numeric, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, date, timezone
from docketdesk.db.session import Base

class InvoiceRecord(Base):
    """Issued invoice. Rows are insert-only: financial fields never change after issue."""
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    invoice_number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    sequence: Mapped[int] = mapped_column(index=True)
    docket_id: Mapped[str] = mapped_column(String(36), index=True)
    customer_id: Mapped[str] = mapped_column(String(36), nullable=True, index=True)

    invoice_date: Mapped[date] = mapped_column(Date)
    due_date: Mapped[date] = mapped_column(Date)
    terms: Mapped[str] = mapped_column(String(30), default="Due on Receipt")
    place_of_supply: Mapped[str] = mapped_column(String(80), default="")
    gst_type: Mapped[str] = mapped_column(String(12), default="IGST")  # IGST | CGST/SGST

    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    gst_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    grand_total: Mapped[Decimal] = mapped_column(Numeric(14, 2))

    billed_to: Mapped[dict] = mapped_column(JSON, default=dict)
    line_items: Mapped[list] = mapped_column(JSON, default=list)
    company_settings: Mapped[dict] = mapped_column(JSON, default=dict)
    notes: Mapped[str] = mapped_column(Text, default="")

    created_by: Mapped[str] = mapped_column(String(36), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
