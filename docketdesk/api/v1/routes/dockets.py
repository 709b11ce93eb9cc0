import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic.alias_generators import to_snake
from sqlalchemy.orm import Session

from docketdesk.db.session import get_db
from docketdesk.api.deps import get_current_user, require_roles
from docketdesk.core.errors import ExtractionMismatch
from docketdesk.models.deletion_log import DocketDeletionLog
from docketdesk.models.user import User
from docketdesk.schemas.docket import Docket, Passenger
from docketdesk.schemas.requests import (
    CommentRequest, CostUpdate, DeleteDocketRequest, PassengerIdsRequest, PaymentRequest,
)
from docketdesk.services import docket_service, flight_pricing_service
from docketdesk.services.cost_service import docket_summary
from docketdesk.services.extraction_service import (
    GeminiExtractor, extract_flight_ticket, extract_hotel_voucher,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dockets"])


def get_extractor() -> GeminiExtractor:
    return GeminiExtractor()


def _out(d: Docket, warning: Optional[str] = None) -> dict:
    out = {"docket": d.to_json(), "summary": docket_summary(d).to_json()}
    if warning:
        out["warning"] = warning
    return out


def _load_editable(db: Session, docket_id: str, me: User) -> Docket:
    d = docket_service.get_docket(db, docket_id)
    if not docket_service.can_edit(d, me):
        raise HTTPException(status_code=403, detail="Docket is read-only for this user")
    return d


def _edit(db: Session, docket_id: str, me: User, change: Callable[[Docket], Docket]) -> dict:
    d = _load_editable(db, docket_id, me)
    return _out(docket_service.save_docket(db, change(d), me))


@router.get("/dockets")
def list_dockets(q: str = "", status: str = "", limit: int = 200,
                 db: Session = Depends(get_db),
                 me: User = Depends(get_current_user)):
    items = docket_service.list_dockets(db, q=q, status=status, limit=min(limit, 500))
    return {
        "total": len(items),
        "items": [
            {**d.to_json(), "summary": docket_summary(d).to_json(), "readOnly": not docket_service.can_edit(d, me)}
            for d in items
        ],
    }


@router.post("/dockets")
def create_docket(body: dict, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    d = Docket.model_validate(body)
    return _out(docket_service.create_docket(db, d, me))


@router.get("/dockets/deleted")
def deletion_log(db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    rows = db.query(DocketDeletionLog).order_by(DocketDeletionLog.deleted_at.desc()).all()
    return [
        {"id": r.id, "docketId": r.docket_id, "clientName": r.client_name, "deletedBy": r.deleted_by,
         "reason": r.reason, "deletedAt": r.deleted_at.isoformat()}
        for r in rows
    ]


@router.get("/dockets/{docket_id}")
def get_docket(docket_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    d = docket_service.get_docket(db, docket_id)
    return {**_out(d), "readOnly": not docket_service.can_edit(d, me)}


@router.put("/dockets/{docket_id}")
def save_docket(docket_id: str, body: dict, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    current = _load_editable(db, docket_id, me)
    d = Docket.model_validate({**body, "id": docket_id, "docketNo": current.docket_no,
                               "createdBy": current.created_by, "invoices": [i for i in current.invoices]})
    return _out(docket_service.save_docket(db, d, me))


@router.delete("/dockets/{docket_id}")
def delete_docket(docket_id: str, body: DeleteDocketRequest,
                  db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    _load_editable(db, docket_id, me)
    entry = docket_service.delete_docket(db, docket_id, body.reason, me)
    return {"ok": True, "deletionLogId": entry.id}


@router.get("/dockets/{docket_id}/summary")
def summary(docket_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return docket_summary(docket_service.get_docket(db, docket_id)).to_json()


# --- passengers ---

@router.post("/dockets/{docket_id}/passengers")
def add_passenger(docket_id: str, body: dict, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    p = Passenger.model_validate(body)
    return _edit(db, docket_id, me, lambda d: docket_service.add_passenger(d, p))


@router.patch("/dockets/{docket_id}/passengers/{passenger_id}")
def update_passenger(docket_id: str, passenger_id: str, body: dict,
                     db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    changes = {to_snake(k): v for k, v in body.items() if k != "id"}
    return _edit(db, docket_id, me, lambda d: docket_service.update_passenger(d, passenger_id, **changes))


@router.delete("/dockets/{docket_id}/passengers/{passenger_id}")
def remove_passenger(docket_id: str, passenger_id: str,
                     db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _edit(db, docket_id, me, lambda d: docket_service.remove_passenger(d, passenger_id))


# --- itinerary items ---

@router.post("/dockets/{docket_id}/itinerary/{category}")
def add_item(docket_id: str, category: str, body: dict | None = None,
             db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    def change(d: Docket) -> Docket:
        model = docket_service.ITEM_TYPES.get(category)
        item = model.model_validate(body) if (model and body) else None
        return docket_service.add_item(d, category, item)
    return _edit(db, docket_id, me, change)


@router.patch("/dockets/{docket_id}/itinerary/{category}/{item_id}")
def update_item(docket_id: str, category: str, item_id: str, body: dict,
                db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    changes = {to_snake(k): v for k, v in body.items() if k != "id"}
    return _edit(db, docket_id, me, lambda d: docket_service.update_item(d, category, item_id, **changes))


@router.delete("/dockets/{docket_id}/itinerary/{category}/{item_id}")
def remove_item(docket_id: str, category: str, item_id: str,
                db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _edit(db, docket_id, me, lambda d: docket_service.remove_item(d, category, item_id))


@router.post("/dockets/{docket_id}/hotels/{hotel_id}/passengers/{passenger_id}/toggle")
def toggle_hotel_passenger(docket_id: str, hotel_id: str, passenger_id: str,
                           db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _edit(db, docket_id, me, lambda d: docket_service.toggle_hotel_passenger(d, hotel_id, passenger_id))


# --- flight pricing ---

@router.post("/dockets/{docket_id}/flights/{flight_id}/passengers")
def add_flight_passengers(docket_id: str, flight_id: str, body: PassengerIdsRequest,
                          db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _edit(db, docket_id, me,
                 lambda d: flight_pricing_service.add_passengers_to_flight(d, flight_id, body.passenger_ids))


@router.delete("/dockets/{docket_id}/flights/{flight_id}/passengers/{passenger_id}")
def remove_flight_passenger(docket_id: str, flight_id: str, passenger_id: str,
                            db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _edit(db, docket_id, me,
                 lambda d: flight_pricing_service.remove_passenger_from_flight(d, flight_id, passenger_id))


@router.put("/dockets/{docket_id}/flights/{flight_id}/passengers/{passenger_id}/cost")
def set_passenger_cost(docket_id: str, flight_id: str, passenger_id: str, body: CostUpdate,
                       db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    field = to_snake(body.field)
    return _edit(db, docket_id, me,
                 lambda d: flight_pricing_service.set_flight_passenger_cost(d, flight_id, passenger_id, field, body.value))


@router.post("/dockets/{docket_id}/flights/{flight_id}/uniform-pricing/toggle")
def toggle_uniform_pricing(docket_id: str, flight_id: str,
                           db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _edit(db, docket_id, me, lambda d: flight_pricing_service.toggle_flight_uniform_pricing(d, flight_id))


@router.put("/dockets/{docket_id}/flights/{flight_id}/common-cost")
def set_common_cost(docket_id: str, flight_id: str, body: CostUpdate,
                    db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    field = to_snake(body.field)
    return _edit(db, docket_id, me,
                 lambda d: flight_pricing_service.set_flight_common_cost(d, flight_id, field, body.value))


# --- payments and comments ---

@router.post("/dockets/{docket_id}/payments")
def add_payment(docket_id: str, body: PaymentRequest,
                db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _edit(db, docket_id, me,
                 lambda d: docket_service.add_payment(d, body.amount, body.date, body.type, body.notes))


@router.post("/dockets/{docket_id}/comments")
def add_comment(docket_id: str, body: CommentRequest,
                db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _edit(db, docket_id, me, lambda d: docket_service.add_comment(d, body.text, me.email))


# --- document extraction ---

@router.post("/dockets/{docket_id}/extract/flight-ticket")
def upload_flight_ticket(docket_id: str, file: UploadFile = File(...), flightId: str | None = Form(None),
                         db: Session = Depends(get_db), me: User = Depends(get_current_user),
                         extractor: GeminiExtractor = Depends(get_extractor)):
    d = _load_editable(db, docket_id, me)
    content = file.file.read()
    try:
        updated = extract_flight_ticket(extractor, d, content, file.filename or "ticket",
                                        file.content_type or "application/pdf", flight_id=flightId)
    except ExtractionMismatch as e:
        return _out(d, warning=str(e))
    return _out(docket_service.save_docket(db, updated, me))


@router.post("/dockets/{docket_id}/extract/hotel-voucher")
def upload_hotel_voucher(docket_id: str, file: UploadFile = File(...),
                         db: Session = Depends(get_db), me: User = Depends(get_current_user),
                         extractor: GeminiExtractor = Depends(get_extractor)):
    d = _load_editable(db, docket_id, me)
    content = file.file.read()
    try:
        updated = extract_hotel_voucher(extractor, d, content, file.filename or "voucher",
                                        file.content_type or "application/pdf")
    except ExtractionMismatch as e:
        return _out(d, warning=str(e))
    return _out(docket_service.save_docket(db, updated, me))
