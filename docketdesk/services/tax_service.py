from decimal import Decimal

from docketdesk.schemas.common import coerce_money
from docketdesk.schemas.invoice import GstType, InvoiceDraft, TaxLine

INDIAN_STATES = [
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh", "Goa", "Gujarat",
    "Haryana", "Himachal Pradesh", "Jharkhand", "Karnataka", "Kerala", "Madhya Pradesh",
    "Maharashtra", "Manipur", "Meghalaya", "Mizoram", "Nagaland", "Odisha", "Punjab", "Rajasthan",
    "Sikkim", "Tamil Nadu", "Telangana", "Tripura", "Uttar Pradesh", "Uttarakhand", "West Bengal",
    "Andaman and Nicobar Islands", "Chandigarh", "Dadra and Nagar Haveli and Daman and Diu",
    "Delhi", "Jammu and Kashmir", "Ladakh", "Lakshadweep", "Puducherry",
]


def _norm(s: str | None) -> str:
    return (s or "").strip().lower()


def resolve_gst_type(place_of_supply: str | None, company_state: str | None) -> GstType:
    pos, state = _norm(place_of_supply), _norm(company_state)
    if pos and state and pos == state:
        return GstType.CGST_SGST
    return GstType.IGST


def set_place_of_supply(draft: InvoiceDraft, place_of_supply: str, company_state: str) -> InvoiceDraft:
    return draft.model_copy(update={
        "place_of_supply": place_of_supply or "",
        "gst_type": resolve_gst_type(place_of_supply, company_state),
        "gst_type_overridden": False,
        "resolved_company_state": company_state or "",
    })


def on_company_state_changed(draft: InvoiceDraft, company_state: str) -> InvoiceDraft:
    return set_place_of_supply(draft, draft.place_of_supply, company_state)


def sync_company_state(draft: InvoiceDraft, company_state: str) -> InvoiceDraft:
    """Re-resolve when the company state moved since the draft was last resolved."""
    if _norm(draft.resolved_company_state) == _norm(company_state):
        return draft
    return on_company_state_changed(draft, company_state)


def override_gst_type(draft: InvoiceDraft, gst_type: GstType | str) -> InvoiceDraft:
    return draft.model_copy(update={"gst_type": GstType(gst_type), "gst_type_overridden": True})


def effective_gst_rate(gst_amount, taxable_base) -> Decimal:
    """Blended rate for display when line items carry mixed rates."""
    base = coerce_money(taxable_base)
    if base <= 0:
        return Decimal(0)
    return coerce_money(gst_amount) / base * 100


def tax_lines(gst_amount, gst_type: GstType | str, effective_rate) -> list[TaxLine]:
    amount = coerce_money(gst_amount)
    rate = coerce_money(effective_rate)
    if amount == 0:
        return []
    if GstType(gst_type) == GstType.CGST_SGST:
        half = amount / 2
        return [
            TaxLine(label="CGST", rate=rate / 2, amount=half),
            TaxLine(label="SGST", rate=rate / 2, amount=half),
        ]
    return [TaxLine(label="IGST", rate=rate, amount=amount)]


def format_percent(rate) -> str:
    """18 -> '18%', 2.5 -> '2.5%', 16.6667 -> '16.67%'."""
    q = coerce_money(rate).quantize(Decimal("0.01"))
    s = f"{q:f}"
    if s.endswith(".00"):
        s = s[:-3]
    elif s.endswith("0") and "." in s:
        s = s[:-1]
    return f"{s}%"


def guess_state_from_address(address: str | None) -> str:
    """'12 MG Road, Bengaluru, Karnataka, 560001' -> 'Karnataka'; '' when nothing matches."""
    parts = (address or "").split(",")
    if len(parts) < 2:
        return ""
    guess = _norm(parts[-2])
    return next((s for s in INDIAN_STATES if s.lower() == guess), "")
