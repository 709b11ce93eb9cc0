from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from docketdesk.models.company_setting import CompanySettingRow, COMPANY_SETTINGS_ROW_ID
from docketdesk.services.settings_service import ensure_company_settings_row


def format_invoice_number(sequence: int, year: int) -> str:
    return f"INV-{year % 100:02d}-{sequence:04d}"


def next_invoice_sequence(db: Session) -> int:
    """Increment and return the counter. Does not commit."""
    ensure_company_settings_row(db)
    row = db.execute(
        select(CompanySettingRow).where(CompanySettingRow.id == COMPANY_SETTINGS_ROW_ID).with_for_update()
    ).scalar_one()
    row.last_invoice_number = int(row.last_invoice_number or 0) + 1
    db.flush()
    return row.last_invoice_number


def peek_next_invoice_number(db: Session, today: date | None = None) -> str:
    """Preview for an unsaved draft. The number is only reserved on finalize."""
    row = ensure_company_settings_row(db)
    today = today or date.today()
    return format_invoice_number(int(row.last_invoice_number or 0) + 1, today.year)
