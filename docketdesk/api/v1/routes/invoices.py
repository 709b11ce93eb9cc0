from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from docketdesk.db.session import get_db
from docketdesk.api.deps import get_current_user
from docketdesk.models.user import User
from docketdesk.schemas.invoice import InvoiceDraft
from docketdesk.schemas.requests import DraftRequest
from docketdesk.services import docket_service, invoice_service, tax_service
from docketdesk.services.invoice_pdf_service import render_invoice_pdf_bytes, store_invoice_pdf
from docketdesk.services.numbering_service import peek_next_invoice_number
from docketdesk.services.settings_service import get_company_settings

router = APIRouter(tags=["invoices"])


def _build_draft(db: Session, body: DraftRequest) -> InvoiceDraft:
    """Start from the posted draft (or a fresh one) and apply the requested commands."""
    company = get_company_settings(db)
    docket = docket_service.get_docket(db, body.docket_id)
    if body.draft:
        draft = InvoiceDraft.model_validate({**body.draft, "docketId": body.docket_id})
        draft = tax_service.sync_company_state(draft, company.company_state)
    else:
        draft = invoice_service.start_draft(docket, company, body.today or date.today())
    if body.bill_to_passenger_id:
        draft = invoice_service.bill_to_passenger(draft, docket, body.bill_to_passenger_id, company.company_state)
    if body.bill_to_customer_id:
        draft = invoice_service.bill_to_customer(draft, db, body.bill_to_customer_id, company.company_state)
    if body.place_of_supply is not None:
        draft = tax_service.set_place_of_supply(draft, body.place_of_supply, company.company_state)
    if body.gst_type:
        draft = tax_service.override_gst_type(draft, body.gst_type)
    if body.terms:
        draft = invoice_service.set_terms(draft, body.terms)
    return draft


@router.post("/invoices/draft")
def draft(body: DraftRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    d = _build_draft(db, body)
    return {
        "draft": d.to_json(),
        "nextInvoiceNumber": peek_next_invoice_number(db, d.date),
        **invoice_service.preview(d),
    }


@router.post("/invoices")
def finalize(body: DraftRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    d = _build_draft(db, body)
    invoice = invoice_service.finalize_invoice(db, d, me, today=body.today)
    return invoice.to_json()


@router.get("/invoices")
def list_invoices(docketId: str | None = None, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return [i.to_json() for i in invoice_service.list_invoices(db, docketId)]


@router.get("/invoices/{invoice_id}")
def get_invoice(invoice_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    inv = invoice_service.get_invoice(db, invoice_id)
    totals = invoice_service.compute_totals(inv.line_items)
    return {
        **inv.to_json(),
        "taxLines": [t.to_json() for t in tax_service.tax_lines(inv.gst_amount, inv.gst_type, totals.effective_gst_rate)],
    }


@router.get("/invoices/{invoice_id}/pdf")
def invoice_pdf(invoice_id: str, store: bool = False,
                db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    inv = invoice_service.get_invoice(db, invoice_id)
    pdf = render_invoice_pdf_bytes(inv)
    if store:
        store_invoice_pdf(invoice_number=inv.invoice_number, pdf_bytes=pdf)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{inv.invoice_number}.pdf"'},
    )
