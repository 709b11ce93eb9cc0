from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Numeric, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from docketdesk.db.session import Base

class LeadRecord(Base):
    __tablename__ = "leads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(320), default="")
    phone: Mapped[str] = mapped_column(String(40), default="")
    company: Mapped[str] = mapped_column(String(200), default="")
    source: Mapped[str] = mapped_column(String(40), default="Walk-in")
    status: Mapped[str] = mapped_column(String(10), default="cold", index=True)  # cold, warm, final
    description: Mapped[str] = mapped_column(Text, default="")
    assigned_to: Mapped[str] = mapped_column(String(200), default="")
    expected_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    created_date: Mapped[str] = mapped_column(String(10), default="")  # YYYY-MM-DD as entered
    last_contact_date: Mapped[str] = mapped_column(String(10), nullable=True)
    next_follow_up_date: Mapped[str] = mapped_column(String(10), nullable=True)
    notes: Mapped[str] = mapped_column(Text, default="")

    travel_dates: Mapped[dict] = mapped_column(JSON, default=dict)
    number_of_pax: Mapped[int] = mapped_column(Integer, default=1)
    number_of_nights: Mapped[int] = mapped_column(Integer, default=0)
    itinerary: Mapped[dict] = mapped_column(JSON, default=dict)  # day1..day10 -> text
    quotation: Mapped[dict] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
