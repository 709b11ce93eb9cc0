import logging
import uuid
from datetime import date, timedelta, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from docketdesk.core.config import settings
from docketdesk.core.errors import NotFoundError, PersistenceError, ValidationError
from docketdesk.models.customer import Customer
from docketdesk.models.docket import DocketRecord
from docketdesk.models.invoice import InvoiceRecord
from docketdesk.models.user import User
from docketdesk.schemas.common import to_paise
from docketdesk.schemas.docket import Docket, Itinerary
from docketdesk.schemas.invoice import (
    BilledTo, CompanySettings, DEFAULT_TERMS, GstBucket, Invoice, InvoiceDraft, InvoiceLineItem,
    InvoiceTotals, PAYMENT_TERMS,
)
from docketdesk.services import tax_service
from docketdesk.services.audit_service import log_audit
from docketdesk.services.cost_service import flight_totals
from docketdesk.services.numbering_service import format_invoice_number, next_invoice_sequence
from docketdesk.services.settings_service import settings_from_row, ensure_company_settings_row

logger = logging.getLogger(__name__)

LINE_FIELDS = {"description", "quantity", "rate", "is_gst_applicable", "gst_rate"}


# -------------------------
# seeding
# -------------------------
def _line(description: str, gross) -> InvoiceLineItem:
    return InvoiceLineItem(description=description, quantity=1, rate=gross, is_gst_applicable=False, gst_rate=0)


def seed_line_items(itinerary: Itinerary) -> list[InvoiceLineItem]:
    """One line per billable itinerary item, at its gross amount."""
    lines = []
    for f in itinerary.flights:
        gross = flight_totals(f).gross_billed
        n = len(f.passenger_details)
        if n > 0 and gross != 0:
            lines.append(_line(f"Flights: {f.airline} ({f.departure_airport}-{f.arrival_airport}) for {n} passenger(s)", gross))
    for h in itinerary.hotels:
        if h.gross_billed != 0:
            lines.append(_line(f"Hotel: {h.name}", h.gross_billed))
    for e in itinerary.excursions:
        if e.gross_billed != 0:
            lines.append(_line(f"Excursion: {e.name}", e.gross_billed))
    for t in itinerary.transfers:
        if t.gross_billed != 0:
            lines.append(_line(f"Transfer: {t.provider}", t.gross_billed))
    return lines


def start_draft(docket: Docket, company: CompanySettings, today: Optional[date] = None) -> InvoiceDraft:
    return InvoiceDraft(
        docket_id=docket.id,
        date=today or date.today(),
        line_items=seed_line_items(docket.itinerary),
        notes=settings.DEFAULT_INVOICE_NOTES,
        place_of_supply="",
        gst_type=tax_service.resolve_gst_type("", company.company_state),
        resolved_company_state=company.company_state,
        terms=DEFAULT_TERMS,
    )


# -------------------------
# line editing
# -------------------------
def add_blank_line(draft: InvoiceDraft) -> InvoiceDraft:
    return draft.model_copy(update={"line_items": [*draft.line_items, InvoiceLineItem()]})


def remove_line(draft: InvoiceDraft, line_id: str) -> InvoiceDraft:
    return draft.model_copy(update={"line_items": [li for li in draft.line_items if li.id != line_id]})


def update_line(draft: InvoiceDraft, line_id: str, field: str, value) -> InvoiceDraft:
    if field not in LINE_FIELDS:
        raise ValidationError(f"unknown line item field: {field}")
    if not any(li.id == line_id for li in draft.line_items):
        raise NotFoundError(f"line item {line_id} not found")
    items = [
        InvoiceLineItem.model_validate({**li.model_dump(), field: value}) if li.id == line_id else li
        for li in draft.line_items
    ]
    return draft.model_copy(update={"line_items": items})


def set_terms(draft: InvoiceDraft, terms: str) -> InvoiceDraft:
    if terms not in PAYMENT_TERMS:
        raise ValidationError(f"unknown payment terms: {terms}")
    return draft.model_copy(update={"terms": terms})


def due_date(invoice_date: date, terms: str) -> date:
    return invoice_date + timedelta(days=PAYMENT_TERMS.get(terms, 0))


# -------------------------
# billing
# -------------------------
def set_billed_to(draft: InvoiceDraft, billed_to: BilledTo | dict, customer_id: Optional[str] = None) -> InvoiceDraft:
    if isinstance(billed_to, dict):
        billed_to = BilledTo.model_validate(billed_to)
    return draft.model_copy(update={"billed_to": billed_to, "customer_id": customer_id})


def bill_to_passenger(draft: InvoiceDraft, docket: Docket, passenger_id: str, company_state: str) -> InvoiceDraft:
    """Bill a docket passenger; the place of supply is guessed from the address when possible."""
    p = docket.passenger(passenger_id)
    if p is None:
        raise NotFoundError(f"passenger {passenger_id} not found")
    draft = set_billed_to(draft, BilledTo(
        name=p.full_name, address=p.address or "", email=p.email or "", phone=p.phone or "", gstin=p.gstin or "",
    ))
    state = tax_service.guess_state_from_address(p.address)
    if state:
        draft = tax_service.set_place_of_supply(draft, state, company_state)
    return draft


def bill_to_customer(draft: InvoiceDraft, db: Session, customer_id: str, company_state: str) -> InvoiceDraft:
    c = db.get(Customer, customer_id)
    if not c:
        raise NotFoundError(f"customer {customer_id} not found")
    draft = set_billed_to(draft, BilledTo(
        name=c.name, address=c.address or "", email=c.email or "", phone=c.phone or "", gstin=c.gstin or "",
    ), customer_id=c.id)
    state = tax_service.guess_state_from_address(c.address)
    if state:
        draft = tax_service.set_place_of_supply(draft, state, company_state)
    return draft


# -------------------------
# totals
# -------------------------
def compute_totals(line_items: Iterable[InvoiceLineItem]) -> InvoiceTotals:
    subtotal = Decimal(0)
    gst = Decimal(0)
    buckets: dict[Decimal, list[Decimal]] = {}
    for li in line_items:
        subtotal += li.taxable_amount
        if li.is_gst_applicable:
            gst += li.gst_value
            if li.gst_rate > 0:
                b = buckets.setdefault(li.gst_rate, [Decimal(0), Decimal(0)])
                b[0] += li.taxable_amount
                b[1] += li.gst_value
    taxable_base = sum((b[0] for b in buckets.values()), Decimal(0))
    # stored as Numeric(14, 2); grand total is the sum of the rounded parts
    subtotal, gst = to_paise(subtotal), to_paise(gst)
    return InvoiceTotals(
        subtotal=subtotal,
        gst_amount=gst,
        grand_total=subtotal + gst,
        gst_breakdown=[
            GstBucket(rate=rate, taxable_amount=b[0], gst_value=b[1]) for rate, b in sorted(buckets.items())
        ],
        taxable_base=taxable_base,
        effective_gst_rate=tax_service.effective_gst_rate(gst, taxable_base),
    )


def preview(draft: InvoiceDraft) -> dict:
    totals = compute_totals(draft.line_items)
    return {
        "totals": totals.to_json(),
        "taxLines": [t.to_json() for t in tax_service.tax_lines(totals.gst_amount, draft.gst_type, totals.effective_gst_rate)],
        "dueDate": due_date(draft.date, draft.terms).isoformat(),
    }


# -------------------------
# issuance
# -------------------------
def finalize_invoice(db: Session, draft: InvoiceDraft, actor: User, today: Optional[date] = None) -> Invoice:
    """Number, snapshot and persist a draft.

    The sequence bump, the invoice row, the docket's invoice list and the
    audit entry share one transaction. On failure everything rolls back and
    the caller still holds its draft.
    """
    billed_to = draft.billed_to
    if billed_to is None or not billed_to.name.strip():
        raise ValidationError("billedTo.name is required")

    rec = db.get(DocketRecord, draft.docket_id)
    if not rec:
        raise NotFoundError(f"docket {draft.docket_id} not found")

    today = today or date.today()
    try:
        seq = next_invoice_sequence(db)
        company = settings_from_row(ensure_company_settings_row(db))
        draft = tax_service.sync_company_state(draft, company.company_state)
        totals = compute_totals(draft.line_items)
        invoice = Invoice(
            id=str(uuid.uuid4()),
            invoice_number=format_invoice_number(seq, today.year),
            date=today,
            billed_to=billed_to.model_copy(deep=True),
            line_items=[li.model_copy(deep=True) for li in draft.line_items],
            notes=draft.notes,
            place_of_supply=draft.place_of_supply,
            subtotal=totals.subtotal,
            gst_amount=totals.gst_amount,
            grand_total=totals.grand_total,
            gst_type=draft.gst_type,
            company_settings=company.model_copy(deep=True),
            terms=draft.terms,
            due_date=due_date(today, draft.terms),
            docket_id=draft.docket_id,
            customer_id=draft.customer_id,
        )
        data = invoice.to_json()
        db.add(InvoiceRecord(
            id=invoice.id,
            invoice_number=invoice.invoice_number,
            sequence=seq,
            docket_id=invoice.docket_id,
            customer_id=invoice.customer_id,
            invoice_date=invoice.date,
            due_date=invoice.due_date,
            terms=invoice.terms,
            place_of_supply=invoice.place_of_supply,
            gst_type=invoice.gst_type.value,
            subtotal=invoice.subtotal,
            gst_amount=invoice.gst_amount,
            grand_total=invoice.grand_total,
            billed_to=data["billedTo"],
            line_items=data["lineItems"],
            company_settings=data["companySettings"],
            notes=invoice.notes,
            created_by=actor.id,
        ))
        # reassign so the JSON column registers the change
        rec.invoices = [*(rec.invoices or []), data]
        rec.updated_at = datetime.now(timezone.utc)
        log_audit(db, actor.id, "invoice.issue", "invoice", invoice.id,
                  {"invoiceNumber": invoice.invoice_number, "docketId": invoice.docket_id,
                   "grandTotal": str(invoice.grand_total)})
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("issuing invoice for docket %s failed: %s", draft.docket_id, e)
        raise PersistenceError("could not save invoice") from e

    logger.info("issued invoice %s for docket %s", invoice.invoice_number, invoice.docket_id)
    return invoice


def to_invoice(rec: InvoiceRecord) -> Invoice:
    return Invoice.model_validate({
        "id": rec.id,
        "invoiceNumber": rec.invoice_number,
        "date": rec.invoice_date,
        "billedTo": rec.billed_to or {},
        "lineItems": rec.line_items or [],
        "notes": rec.notes or "",
        "placeOfSupply": rec.place_of_supply or "",
        "subtotal": rec.subtotal,
        "gstAmount": rec.gst_amount,
        "grandTotal": rec.grand_total,
        "gstType": rec.gst_type,
        "companySettings": rec.company_settings or {},
        "terms": rec.terms,
        "dueDate": rec.due_date,
        "docketId": rec.docket_id,
        "customerId": rec.customer_id,
    })


def get_invoice(db: Session, invoice_id: str) -> Invoice:
    rec = db.get(InvoiceRecord, invoice_id)
    if not rec:
        rec = db.execute(select(InvoiceRecord).where(InvoiceRecord.invoice_number == invoice_id)).scalar_one_or_none()
    if not rec:
        raise NotFoundError(f"invoice {invoice_id} not found")
    return to_invoice(rec)


def list_invoices(db: Session, docket_id: Optional[str] = None) -> list[Invoice]:
    q = select(InvoiceRecord).order_by(InvoiceRecord.sequence.desc())
    if docket_id:
        q = q.where(InvoiceRecord.docket_id == docket_id)
    return [to_invoice(r) for r in db.execute(q).scalars().all()]


