from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from docketdesk.db.session import Base

class DocketRecord(Base):
    """Whole docket aggregate. Nested collections are stored as camelCase JSON
    and written back wholesale on every save (last write wins)."""
    __tablename__ = "dockets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    docket_no: Mapped[str] = mapped_column(String(10), unique=True, index=True, nullable=True)

    client: Mapped[dict] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="In Progress", index=True)  # In Progress, Confirmed, Cancelled
    tag: Mapped[str] = mapped_column(String(20), default="Individual")  # Individual, Group
    agent_id: Mapped[str] = mapped_column(String(36), nullable=True, index=True)

    passengers: Mapped[list] = mapped_column(JSON, default=list)
    itinerary: Mapped[dict] = mapped_column(JSON, default=dict)
    files: Mapped[list] = mapped_column(JSON, default=list)
    comments: Mapped[list] = mapped_column(JSON, default=list)
    payments: Mapped[list] = mapped_column(JSON, default=list)
    invoices: Mapped[list] = mapped_column(JSON, default=list)
    search_tags: Mapped[list] = mapped_column(JSON, default=list)

    created_by: Mapped[str] = mapped_column(String(36), index=True, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
