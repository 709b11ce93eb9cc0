from sqlalchemy import Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from docketdesk.db.session import Base

COMPANY_SETTINGS_ROW_ID = 1

class CompanySettingRow(Base):
    """Process-wide singleton (id=1). The invoice counter lives in its own
    column so it can be locked and incremented without rewriting the JSON."""
    __tablename__ = "company_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=COMPANY_SETTINGS_ROW_ID)
    settings: Mapped[dict] = mapped_column(JSON, default=dict)
    last_invoice_number: Mapped[int] = mapped_column(Integer, default=1000)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
