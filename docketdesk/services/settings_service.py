from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from pydantic.alias_generators import to_camel

from docketdesk.core.errors import PersistenceError, ValidationError
from docketdesk.models.company_setting import CompanySettingRow, COMPANY_SETTINGS_ROW_ID
from docketdesk.schemas.invoice import CompanySettings

logger = logging.getLogger(__name__)

DEFAULT_COMPANY_SETTINGS = CompanySettings()


def ensure_company_settings_row(db: Session) -> CompanySettingRow:
    """Fetch the singleton row, creating it from defaults on first use."""
    row = db.get(CompanySettingRow, COMPANY_SETTINGS_ROW_ID)
    if row:
        return row
    defaults = DEFAULT_COMPANY_SETTINGS.to_json()
    last = defaults.pop("lastInvoiceNumber")
    row = CompanySettingRow(id=COMPANY_SETTINGS_ROW_ID, settings=defaults, last_invoice_number=last)
    db.add(row)
    db.flush()
    return row


def settings_from_row(row: CompanySettingRow) -> CompanySettings:
    data = dict(row.settings or {})
    data["lastInvoiceNumber"] = row.last_invoice_number
    return CompanySettings.model_validate(data)


def get_company_settings(db: Session) -> CompanySettings:
    row = ensure_company_settings_row(db)
    db.commit()
    return settings_from_row(row)


def update_company_settings(db: Session, changes: dict) -> CompanySettings:
    """Merge changes (snake_case or camelCase keys) into the stored settings.

    The invoice counter is owned by the numbering service and cannot be
    rewound here except by explicitly passing last_invoice_number.
    """
    row = ensure_company_settings_row(db)
    current = settings_from_row(row)
    merged = CompanySettings.model_validate({**current.model_dump(), **_snake(changes)})
    data = merged.to_json()
    last = data.pop("lastInvoiceNumber")
    if last < 0:
        raise ValidationError("lastInvoiceNumber must be >= 0")
    row.settings = data
    row.last_invoice_number = last
    row.updated_at = datetime.now(timezone.utc)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("company settings update failed: %s", e)
        raise PersistenceError("could not save company settings") from e
    return merged


def _snake(changes: dict) -> dict:
    by_alias = {to_camel(name): name for name in CompanySettings.model_fields}
    return {by_alias.get(k, k): v for k, v in (changes or {}).items() if v is not None}
