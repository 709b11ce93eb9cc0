from __future__ import annotations

import io
import os
from datetime import datetime, timezone

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from docketdesk.core.config import settings
from docketdesk.schemas.invoice import Invoice
from docketdesk.services.invoice_service import compute_totals
from docketdesk.services.tax_service import format_percent, tax_lines
from docketdesk.utils.formatting import amount_to_words, format_date, format_inr

LEFT = 40
RIGHT_EDGE = A4[0] - 40
BOTTOM_MARGIN = 90
# the base-14 fonts have no rupee glyph
RS = "Rs. "
COLS = [(LEFT, "#"), (65, "Description"), (330, "Qty"), (370, "Rate"), (440, "GST"), (RIGHT_EDGE, "Amount")]


def _footer(c: canvas.Canvas, page: int) -> None:
    c.setFont("Helvetica", 8)
    c.drawString(LEFT, 26, f"Generated: {datetime.now(timezone.utc).isoformat(timespec='seconds')}")
    c.drawRightString(RIGHT_EDGE, 26, f"Page {page}")


def _table_header(c: canvas.Canvas, y: float) -> float:
    c.setFont("Helvetica-Bold", 9)
    for x, label in COLS:
        if label == "Amount":
            c.drawRightString(x, y, label)
        else:
            c.drawString(x, y, label)
    c.line(LEFT, y - 4, RIGHT_EDGE, y - 4)
    return y - 18


def render_invoice_pdf_bytes(invoice: Invoice) -> bytes:
    """Return an A4 PDF of an issued invoice. Pure function."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    _, h = A4
    co = invoice.company_settings
    page = 1

    # Company header
    c.setFont("Helvetica-Bold", 16)
    c.drawString(LEFT, h - 55, co.company_name)
    c.setFont("Helvetica", 9)
    c.drawString(LEFT, h - 70, co.company_address)
    c.drawString(LEFT, h - 82, co.company_contact)
    if co.gst_number:
        c.drawString(LEFT, h - 94, f"GSTIN: {co.gst_number}")

    c.setFont("Helvetica-Bold", 18)
    c.drawRightString(RIGHT_EDGE, h - 55, "TAX INVOICE")
    c.setFont("Helvetica", 10)
    c.drawRightString(RIGHT_EDGE, h - 72, f"Invoice No: {invoice.invoice_number}")
    c.drawRightString(RIGHT_EDGE, h - 86, f"Date: {format_date(invoice.date)}")
    c.drawRightString(RIGHT_EDGE, h - 100, f"Terms: {invoice.terms}")
    c.drawRightString(RIGHT_EDGE, h - 114, f"Due Date: {format_date(invoice.due_date)}")

    # Billed to
    bt = invoice.billed_to
    y = h - 145
    c.setFont("Helvetica-Bold", 11)
    c.drawString(LEFT, y, "Bill To")
    c.setFont("Helvetica", 10)
    for line in [bt.name, bt.address, bt.email, bt.phone, f"GSTIN: {bt.gstin}" if bt.gstin else ""]:
        if line:
            y -= 14
            c.drawString(LEFT, y, line)
    if invoice.place_of_supply:
        y -= 14
        c.drawString(LEFT, y, f"Place of Supply: {invoice.place_of_supply}")

    # Line items
    y = _table_header(c, y - 30)
    c.setFont("Helvetica", 9)
    for i, li in enumerate(invoice.line_items, start=1):
        if y < BOTTOM_MARGIN:
            _footer(c, page)
            c.showPage()
            page += 1
            y = _table_header(c, h - 60)
            c.setFont("Helvetica", 9)
        c.drawString(COLS[0][0], y, str(i))
        c.drawString(COLS[1][0], y, li.description[:55])
        c.drawString(COLS[2][0], y, f"{li.quantity.normalize():f}")
        c.drawString(COLS[3][0], y, format_inr(li.rate, symbol=RS))
        c.drawString(COLS[4][0], y, format_percent(li.gst_rate) if li.is_gst_applicable else "-")
        c.drawRightString(COLS[5][0], y, format_inr(li.taxable_amount, symbol=RS))
        y -= 15

    # Totals
    if y < BOTTOM_MARGIN + 120:
        _footer(c, page)
        c.showPage()
        page += 1
        y = h - 60
    totals = compute_totals(invoice.line_items)
    y -= 10
    c.line(330, y + 8, RIGHT_EDGE, y + 8)
    c.setFont("Helvetica", 10)
    c.drawString(370, y, "Subtotal")
    c.drawRightString(RIGHT_EDGE, y, format_inr(invoice.subtotal, symbol=RS))
    for t in tax_lines(invoice.gst_amount, invoice.gst_type, totals.effective_gst_rate):
        y -= 14
        c.drawString(370, y, f"{t.label} ({format_percent(t.rate)})")
        c.drawRightString(RIGHT_EDGE, y, format_inr(t.amount, symbol=RS))
    y -= 18
    c.setFont("Helvetica-Bold", 11)
    c.drawString(370, y, "Grand Total")
    c.drawRightString(RIGHT_EDGE, y, format_inr(invoice.grand_total, symbol=RS))

    y -= 26
    c.setFont("Helvetica-Oblique", 9)
    c.drawString(LEFT, y, f"Amount in words: {amount_to_words(invoice.grand_total)} Only")

    # Bank details
    y -= 30
    c.setFont("Helvetica-Bold", 10)
    c.drawString(LEFT, y, "Bank Details")
    c.setFont("Helvetica", 9)
    c.drawString(LEFT, y - 13, f"Bank: {co.bank_name}")
    c.drawString(LEFT, y - 26, f"A/C No: {co.account_number}")
    c.drawString(LEFT, y - 39, f"IFSC: {co.ifsc_code}")

    if invoice.notes:
        y -= 60
        c.setFont("Helvetica-Bold", 10)
        c.drawString(LEFT, y, "Notes")
        c.setFont("Helvetica", 9)
        for line in invoice.notes.splitlines()[:6]:
            y -= 12
            c.drawString(LEFT, y, line[:110])

    _footer(c, page)
    c.showPage()
    c.save()
    return buf.getvalue()


def store_invoice_pdf(*, invoice_number: str, pdf_bytes: bytes) -> tuple[str, str]:
    """Store invoice and return (storage_backend, object_key)."""
    if settings.GCS_BUCKET_NAME and settings.GOOGLE_APPLICATION_CREDENTIALS:
        try:
            from google.cloud import storage  # type: ignore
        except ImportError as e:
            raise RuntimeError("google-cloud-storage is not installed. Install the gcs extra and retry") from e

        client = storage.Client()
        bucket = client.bucket(settings.GCS_BUCKET_NAME)
        object_key = f"invoices/{invoice_number}.pdf"
        blob = bucket.blob(object_key)
        blob.upload_from_string(pdf_bytes, content_type="application/pdf")
        return "gcs", object_key

    base = settings.INVOICE_LOCAL_DIR or "./data/invoices"
    os.makedirs(base, exist_ok=True)
    object_key = os.path.join(base, f"{invoice_number}.pdf")
    with open(object_key, "wb") as f:
        f.write(pdf_bytes)
    return "local", object_key
