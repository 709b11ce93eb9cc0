"""Request bodies for docket and invoice commands."""
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from docketdesk.schemas.common import ApiModel
from docketdesk.schemas.docket import PaymentType


class DeleteDocketRequest(ApiModel):
    reason: str


class PassengerIdsRequest(ApiModel):
    passenger_ids: List[str]


class CostUpdate(ApiModel):
    field: str  # netCost | grossBilled (or snake_case)
    value: Any = None


class PaymentRequest(ApiModel):
    amount: Decimal
    date: str
    type: PaymentType = PaymentType.CASH
    notes: Optional[str] = None


class CommentRequest(ApiModel):
    text: str


class DraftRequest(ApiModel):
    """Draft as edited on the client plus optional commands applied server-side."""
    docket_id: str
    draft: Optional[dict] = None
    place_of_supply: Optional[str] = None
    gst_type: Optional[str] = None
    bill_to_passenger_id: Optional[str] = None
    bill_to_customer_id: Optional[str] = None
    terms: Optional[str] = None
    today: Optional[date] = None
