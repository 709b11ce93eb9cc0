from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from docketdesk.core.errors import NotFoundError, PersistenceError, ValidationError
from docketdesk.models.company_setting import CompanySettingRow, COMPANY_SETTINGS_ROW_ID
from docketdesk.models.invoice import InvoiceRecord
from docketdesk.schemas.docket import Excursion, Transfer
from docketdesk.schemas.invoice import BilledTo, CompanySettings, GstType, InvoiceLineItem
from docketdesk.services import docket_service, invoice_service, tax_service
from docketdesk.services.settings_service import get_company_settings, update_company_settings

TODAY = date(2026, 10, 19)


def _lines():
    return [
        InvoiceLineItem(description="Package", quantity=1, rate=1000, is_gst_applicable=True, gst_rate=18),
        InvoiceLineItem(description="Visa", quantity=2, rate=500, is_gst_applicable=False, gst_rate=18),
    ]


def test_totals_scenario():
    t = invoice_service.compute_totals(_lines())
    assert t.subtotal == 2000
    assert t.gst_amount == 180
    assert t.grand_total == 2180
    assert t.grand_total == t.subtotal + t.gst_amount


def test_breakdown_groups_by_rate_and_blends_effective_rate():
    lines = [
        InvoiceLineItem(quantity=1, rate=1000, is_gst_applicable=True, gst_rate=5),
        InvoiceLineItem(quantity=1, rate=1000, is_gst_applicable=True, gst_rate=18),
        InvoiceLineItem(quantity=2, rate=500, is_gst_applicable=True, gst_rate=18),
        InvoiceLineItem(quantity=1, rate=700),
    ]
    t = invoice_service.compute_totals(lines)
    assert [(b.rate, b.taxable_amount, b.gst_value) for b in t.gst_breakdown] == [
        (Decimal(5), Decimal(1000), Decimal(50)),
        (Decimal(18), Decimal(2000), Decimal(360)),
    ]
    assert t.taxable_base == 3000
    assert t.gst_amount == 410
    assert t.effective_gst_rate == Decimal(410) / Decimal(3000) * 100


def test_seed_line_items(sample_docket):
    it = sample_docket.itinerary.model_copy(update={
        "excursions": [Excursion(name="Dudhsagar Falls", gross_billed=2500), Excursion(name="Free walk", gross_billed=0)],
        "transfers": [Transfer(provider="GoaCabs", gross_billed=800)],
    })
    lines = invoice_service.seed_line_items(it)
    assert [l.description for l in lines] == [
        "Flights: IndiGo (DEL-GOI) for 2 passenger(s)",
        "Hotel: Taj Fort Aguada",
        "Excursion: Dudhsagar Falls",
        "Transfer: GoaCabs",
    ]
    assert [l.rate for l in lines] == [25000, 5000, 2500, 800]
    assert all(l.quantity == 1 and not l.is_gst_applicable for l in lines)


def test_start_draft_defaults(sample_docket):
    draft = invoice_service.start_draft(sample_docket, CompanySettings(), TODAY)
    assert draft.date == TODAY
    assert draft.terms == "Due on Receipt"
    assert draft.gst_type == GstType.IGST
    assert draft.billed_to is None
    assert len(draft.line_items) == 2


def test_line_editing(sample_docket):
    draft = invoice_service.add_blank_line(invoice_service.start_draft(sample_docket, CompanySettings(), TODAY))
    blank = draft.line_items[-1]
    draft = invoice_service.update_line(draft, blank.id, "rate", "1,500")
    draft = invoice_service.update_line(draft, blank.id, "is_gst_applicable", True)
    draft = invoice_service.update_line(draft, blank.id, "gst_rate", 12)
    assert draft.line_items[-1].gst_value == 180
    draft = invoice_service.remove_line(draft, draft.line_items[0].id)
    assert len(draft.line_items) == 2
    with pytest.raises(ValidationError):
        invoice_service.update_line(draft, blank.id, "profit", 1)
    with pytest.raises(NotFoundError):
        invoice_service.update_line(draft, "LINE-NOPE", "rate", 1)


def test_bill_to_passenger_guesses_place_of_supply(sample_docket):
    draft = invoice_service.start_draft(sample_docket, CompanySettings(), TODAY)
    draft = invoice_service.bill_to_passenger(draft, sample_docket, "PAX-A", "Karnataka")
    assert draft.billed_to.name == "Asha Verma"
    assert draft.place_of_supply == "Karnataka"
    assert draft.gst_type == GstType.CGST_SGST


def test_due_date_from_terms():
    assert invoice_service.due_date(TODAY, "Due on Receipt") == TODAY
    assert invoice_service.due_date(TODAY, "Net 30") == date(2026, 11, 18)


def _draft(db, admin, sample_docket):
    saved = docket_service.create_docket(db, sample_docket, admin)
    draft = invoice_service.start_draft(saved, get_company_settings(db), TODAY)
    return saved, invoice_service.set_billed_to(draft, BilledTo(name="Asha Verma", address="Bengaluru"))


def test_finalize_requires_billed_to_name(db, admin, sample_docket):
    saved, draft = _draft(db, admin, sample_docket)
    draft = invoice_service.set_billed_to(draft, BilledTo(name="  "))
    with pytest.raises(ValidationError):
        invoice_service.finalize_invoice(db, draft, admin, today=TODAY)
    assert db.get(CompanySettingRow, COMPANY_SETTINGS_ROW_ID).last_invoice_number == 1000
    assert db.query(InvoiceRecord).count() == 0


def test_first_invoice_after_seed_is_1001_and_numbers_increase(db, admin, sample_docket):
    saved, draft = _draft(db, admin, sample_docket)
    first = invoice_service.finalize_invoice(db, draft, admin, today=TODAY)
    second = invoice_service.finalize_invoice(db, draft, admin, today=TODAY)
    assert first.invoice_number == "INV-26-1001"
    assert second.invoice_number == "INV-26-1002"
    assert db.get(CompanySettingRow, COMPANY_SETTINGS_ROW_ID).last_invoice_number == 1002

    d = docket_service.get_docket(db, saved.id)
    assert [i["invoiceNumber"] for i in d.invoices] == ["INV-26-1001", "INV-26-1002"]


def test_issued_invoice_is_a_snapshot(db, admin, sample_docket):
    saved, draft = _draft(db, admin, sample_docket)
    inv = invoice_service.finalize_invoice(db, draft, admin, today=TODAY)
    update_company_settings(db, {"companyName": "Renamed Travels", "bankName": "Other Bank"})

    again = invoice_service.get_invoice(db, inv.id)
    assert again.company_settings.company_name == "WanderWyze Travel Co."
    assert again.grand_total == inv.grand_total
    assert again.billed_to.name == "Asha Verma"


def test_failed_save_rolls_back_the_sequence(db, admin, sample_docket, monkeypatch):
    saved, draft = _draft(db, admin, sample_docket)

    def boom():
        raise SQLAlchemyError("disk full")
    monkeypatch.setattr(db, "commit", boom)
    with pytest.raises(PersistenceError):
        invoice_service.finalize_invoice(db, draft, admin, today=TODAY)
    monkeypatch.undo()

    assert db.get(CompanySettingRow, COMPANY_SETTINGS_ROW_ID).last_invoice_number == 1000
    inv = invoice_service.finalize_invoice(db, draft, admin, today=TODAY)
    assert inv.invoice_number == "INV-26-1001"


def test_intrastate_invoice_tax_lines(db, admin, sample_docket):
    saved, draft = _draft(db, admin, sample_docket)
    draft = draft.model_copy(update={"line_items": _lines()})
    draft = tax_service.set_place_of_supply(draft, "delhi", "Delhi")
    inv = invoice_service.finalize_invoice(db, draft, admin, today=TODAY)
    assert inv.gst_type == GstType.CGST_SGST
    lines = tax_service.tax_lines(inv.gst_amount, inv.gst_type, Decimal(18))
    assert lines[0].amount == lines[1].amount == inv.gst_amount / 2


def _fractional_lines():
    return [
        InvoiceLineItem(description="Service fee", quantity=1, rate="333.33", is_gst_applicable=True, gst_rate=18),
        InvoiceLineItem(description="Insurance", quantity="1.5", rate="10.01", is_gst_applicable=True, gst_rate=5),
    ]


def test_totals_are_rounded_to_paise():
    t = invoice_service.compute_totals(_fractional_lines())
    assert t.subtotal == Decimal("348.35")
    assert t.gst_amount == Decimal("60.75")
    assert t.grand_total == Decimal("409.10")
    assert t.grand_total == t.subtotal + t.gst_amount


def test_issued_totals_match_everywhere_they_are_stored(db, admin, sample_docket):
    saved, draft = _draft(db, admin, sample_docket)
    draft = draft.model_copy(update={"line_items": _fractional_lines()})
    issued = invoice_service.finalize_invoice(db, draft, admin, today=TODAY)

    reread = invoice_service.get_invoice(db, issued.id)
    stored = docket_service.get_docket(db, saved.id).invoices[-1]
    for field, alias in (("subtotal", "subtotal"), ("gst_amount", "gstAmount"), ("grand_total", "grandTotal")):
        assert getattr(reread, field) == getattr(issued, field)
        assert Decimal(stored[alias]) == getattr(issued, field)
    assert issued.grand_total == Decimal("409.10")


def test_finalize_reresolves_gst_after_company_state_change(db, admin, sample_docket):
    saved, draft = _draft(db, admin, sample_docket)
    draft = draft.model_copy(update={"line_items": _lines()})
    draft = tax_service.set_place_of_supply(draft, "Delhi", "Delhi")
    assert draft.gst_type == GstType.CGST_SGST

    update_company_settings(db, {"companyState": "Karnataka"})
    inv = invoice_service.finalize_invoice(db, draft, admin, today=TODAY)
    assert inv.gst_type == GstType.IGST
    assert inv.company_settings.company_state == "Karnataka"
