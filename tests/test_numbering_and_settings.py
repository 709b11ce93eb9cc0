from datetime import date

import pytest

from docketdesk.core.errors import ValidationError
from docketdesk.services.numbering_service import (
    format_invoice_number, next_invoice_sequence, peek_next_invoice_number,
)
from docketdesk.services.settings_service import get_company_settings, update_company_settings


def test_format_invoice_number():
    assert format_invoice_number(1001, 2026) == "INV-26-1001"
    assert format_invoice_number(7, 2031) == "INV-31-0007"


def test_defaults_created_on_first_read(db):
    s = get_company_settings(db)
    assert s.company_name == "WanderWyze Travel Co."
    assert s.company_state == "Delhi"
    assert s.last_invoice_number == 1000


def test_peek_does_not_consume(db):
    assert peek_next_invoice_number(db, date(2026, 10, 19)) == "INV-26-1001"
    assert peek_next_invoice_number(db, date(2026, 10, 19)) == "INV-26-1001"


def test_sequence_increments_inside_transaction(db):
    assert next_invoice_sequence(db) == 1001
    assert next_invoice_sequence(db) == 1002
    db.rollback()
    # nothing committed, so the counter is back where it started
    assert next_invoice_sequence(db) == 1001
    db.commit()
    assert get_company_settings(db).last_invoice_number == 1001


def test_update_accepts_camel_and_snake_keys(db):
    s = update_company_settings(db, {"companyState": "Karnataka", "gst_number": "29ABCDE1234F1Z5", "bankName": None})
    assert s.company_state == "Karnataka"
    assert s.gst_number == "29ABCDE1234F1Z5"
    assert s.bank_name == "Global Bank"
    assert get_company_settings(db).company_state == "Karnataka"
    assert s.last_invoice_number == 1000


def test_counter_cannot_go_negative(db):
    with pytest.raises(ValidationError):
        update_company_settings(db, {"lastInvoiceNumber": -1})
    assert get_company_settings(db).last_invoice_number == 1000
