from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from docketdesk.schemas.common import DomainModel, Money, Text
from docketdesk.schemas.docket import new_id


class GstType(str, Enum):
    IGST = "IGST"
    CGST_SGST = "CGST/SGST"


GST_RATES = [0, 5, 12, 18, 28]

# payment terms -> days until due
PAYMENT_TERMS = {
    "Due on Receipt": 0,
    "Net 15": 15,
    "Net 30": 30,
    "Net 60": 60,
}
DEFAULT_TERMS = "Due on Receipt"


class CompanySettings(DomainModel):
    company_name: Text = "WanderWyze Travel Co."
    company_address: Text = "123 Travel Lane, New Delhi, India"
    company_contact: Text = "+91 98765 43210 | contact@wanderwyze.com"
    bank_name: Text = "Global Bank"
    account_number: Text = "1234567890"
    ifsc_code: Text = "GBL0000123"
    gst_number: Text = ""
    company_state: Text = "Delhi"
    last_invoice_number: int = 1000


class BilledTo(DomainModel):
    name: Text = ""
    address: Text = ""
    email: Text = ""
    phone: Text = ""
    gstin: Text = ""


class InvoiceLineItem(DomainModel):
    id: str = Field(default_factory=lambda: new_id("LINE"))
    description: Text = ""
    quantity: Money = 1
    rate: Money = 0
    is_gst_applicable: bool = False
    gst_rate: Money = 0  # percent

    @property
    def taxable_amount(self):
        return self.quantity * self.rate

    @property
    def gst_value(self):
        if not self.is_gst_applicable:
            return Decimal(0)
        return self.taxable_amount * self.gst_rate / 100

    @property
    def line_gross(self):
        return self.taxable_amount + self.gst_value


class GstBucket(DomainModel):
    rate: Money
    taxable_amount: Money = 0
    gst_value: Money = 0


class TaxLine(DomainModel):
    label: str  # CGST, SGST or IGST
    rate: Money
    amount: Money


class InvoiceTotals(DomainModel):
    subtotal: Money = 0
    gst_amount: Money = 0
    grand_total: Money = 0
    gst_breakdown: List[GstBucket] = Field(default_factory=list)
    taxable_base: Money = 0
    effective_gst_rate: Money = 0


class InvoiceDraft(DomainModel):
    """Editable, unnumbered invoice. Every edit returns a new draft."""
    docket_id: str
    date: date
    billed_to: Optional[BilledTo] = None
    customer_id: Optional[str] = None
    place_of_supply: Text = ""
    line_items: List[InvoiceLineItem] = Field(default_factory=list)
    notes: Text = ""
    gst_type: GstType = GstType.IGST
    gst_type_overridden: bool = False
    resolved_company_state: Text = ""  # company state gst_type was resolved against
    terms: str = DEFAULT_TERMS


class Invoice(DomainModel):
    id: str = Field(default_factory=lambda: new_id("INV"))
    invoice_number: str
    date: date
    billed_to: BilledTo
    line_items: List[InvoiceLineItem]
    notes: Text = ""
    place_of_supply: Text = ""
    subtotal: Money
    gst_amount: Money
    grand_total: Money
    gst_type: GstType
    company_settings: CompanySettings
    terms: str = DEFAULT_TERMS
    due_date: date
    docket_id: str
    customer_id: Optional[str] = None
