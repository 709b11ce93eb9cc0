import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from docketdesk.core.errors import NotFoundError, PersistenceError, ValidationError
from docketdesk.models.docket import DocketRecord
from docketdesk.models.deletion_log import DocketDeletionLog
from docketdesk.models.supplier import Agent
from docketdesk.models.user import User
from docketdesk.schemas.common import coerce_money
from docketdesk.schemas.docket import (
    BookingStatus, Comment, Docket, Excursion, Flight, Hotel, Itinerary, Passenger, Payment, PaymentType, Transfer,
)
from docketdesk.services.audit_service import log_audit
from docketdesk.services.cost_service import category_totals
from docketdesk.utils.formatting import format_date, format_inr

logger = logging.getLogger(__name__)

ITEM_TYPES = {"flights": Flight, "hotels": Hotel, "excursions": Excursion, "transfers": Transfer}

# category -> label used in the system cost log
COST_LOG_LABELS = [("flights", "Flight"), ("hotels", "Hotel"), ("transfers", "Transfers"), ("excursions", "Excursions")]


# -------------------------
# record mapping
# -------------------------
def to_docket(rec: DocketRecord) -> Docket:
    return Docket.model_validate({
        "id": rec.id,
        "docketNo": rec.docket_no,
        "client": rec.client or {},
        "status": rec.status,
        "tag": rec.tag,
        "agentId": rec.agent_id,
        "passengers": rec.passengers or [],
        "itinerary": rec.itinerary or {},
        "files": rec.files or [],
        "comments": rec.comments or [],
        "payments": rec.payments or [],
        "invoices": rec.invoices or [],
        "searchTags": rec.search_tags or [],
        "createdBy": rec.created_by or "",
        "createdAt": rec.created_at,
        "updatedAt": rec.updated_at,
    })


def _write(rec: DocketRecord, d: Docket) -> None:
    data = d.to_json()
    rec.client = data["client"]
    rec.status = d.status.value
    rec.tag = d.tag.value
    rec.agent_id = d.agent_id
    rec.passengers = data["passengers"]
    rec.itinerary = data["itinerary"]
    rec.files = data["files"]
    rec.comments = data["comments"]
    rec.payments = data["payments"]
    rec.invoices = data["invoices"]
    rec.search_tags = list(d.search_tags)


# -------------------------
# queries
# -------------------------
def get_docket_record(db: Session, docket_id: str) -> DocketRecord:
    rec = db.get(DocketRecord, docket_id)
    if not rec:
        raise NotFoundError(f"docket {docket_id} not found")
    return rec


def get_docket(db: Session, docket_id: str) -> Docket:
    return to_docket(get_docket_record(db, docket_id))


def list_dockets(db: Session, q: str = "", status: str = "", limit: int = 200) -> list[Docket]:
    rows = db.execute(select(DocketRecord).order_by(DocketRecord.created_at.desc())).scalars().all()
    out = []
    ql = q.strip().lower()
    for rec in rows:
        if status and rec.status != status:
            continue
        if ql and not (ql in (rec.docket_no or "") or ql in rec.id.lower()
                       or any(ql in t for t in (rec.search_tags or []))):
            continue
        out.append(to_docket(rec))
        if len(out) >= limit:
            break
    return out


def can_edit(docket: Docket, user: User) -> bool:
    """Admins edit everything; other users only the dockets they created."""
    if not docket.id:
        return True
    return user.role == "admin" or docket.created_by == user.id


# -------------------------
# derived fields
# -------------------------
def build_search_tags(docket: Docket, agent_name: str = "") -> list[str]:
    values = [docket.client.name, docket.client.contact_info]
    values += [p.full_name for p in docket.passengers]
    for f in docket.itinerary.flights:
        values += [f.airline, f.departure_airport, f.arrival_airport]
    values += [h.name for h in docket.itinerary.hotels]
    values += [e.name for e in docket.itinerary.excursions]
    values += [t.provider for t in docket.itinerary.transfers]
    values.append(agent_name)
    seen: dict[str, None] = {}
    for v in values:
        v = (v or "").strip().lower()
        if v:
            seen.setdefault(v, None)
    return list(seen)


def cost_log_comments(previous: Optional[Docket], docket: Docket, now: datetime) -> list[Comment]:
    """System comments recording per-category costs.

    Written when a docket is first saved or when its status moves to
    Confirmed. A category is skipped when its totals are zero or when the
    latest system comment for it already says the same thing.
    """
    is_new = previous is None
    just_confirmed = (previous is not None and previous.status != BookingStatus.CONFIRMED
                      and docket.status == BookingStatus.CONFIRMED)
    if not (is_new or just_confirmed):
        return []

    ts = now.strftime("%Y-%m-%d %H:%M:%S")
    totals = category_totals(docket.itinerary)
    out = []
    for category, label in COST_LOG_LABELS:
        t = totals[category]
        if t.net_cost <= 0 and t.gross_billed <= 0:
            continue
        text = (f"{ts} – Net Cost: {format_inr(round(t.net_cost), decimals=False)}, "
                f"Gross Cost: {format_inr(round(t.gross_billed), decimals=False)} – {label}")
        recent = next((c for c in docket.comments if c.is_system and c.text.strip().endswith(f"– {label}")), None)
        if recent and recent.text == text:
            continue
        out.append(Comment(id=f"SYS-COST-{label}-{uuid.uuid4().hex[:8]}", text=text,
                           timestamp=now.isoformat(), author="System", is_system=True))
    return out


def make_docket_no() -> str:
    return f"{random.randint(0, 99999):05d}"


def _allocate_docket_no(db: Session) -> str:
    for _ in range(10):
        no = make_docket_no()
        exists = db.execute(select(DocketRecord.id).where(DocketRecord.docket_no == no)).first()
        if not exists:
            return no
    raise PersistenceError("could not allocate docket number")


# -------------------------
# persistence
# -------------------------
def save_docket(db: Session, docket: Docket, actor: User, now: Optional[datetime] = None) -> Docket:
    now = now or datetime.now(timezone.utc)
    rec = db.get(DocketRecord, docket.id) if docket.id else None
    previous = to_docket(rec) if rec else None

    if previous is not None and not can_edit(previous, actor):
        raise ValidationError("read-only: only the creator or an admin can edit this docket")

    agent = db.get(Agent, docket.agent_id) if docket.agent_id else None
    new_logs = cost_log_comments(previous, docket, now)
    comments = [*new_logs, *docket.comments]
    docket = docket.model_copy(update={
        "comments": comments,
        "search_tags": build_search_tags(docket, agent.name if agent else ""),
        "updated_at": now,
    })

    try:
        if rec is None:
            rec = DocketRecord(
                id=docket.id or f"DOCKET-{uuid.uuid4().hex[:12].upper()}",
                docket_no=docket.docket_no or _allocate_docket_no(db),
                created_by=actor.id,
                created_at=now,
            )
            db.add(rec)
            action = "docket.create"
        else:
            action = "docket.update"
        _write(rec, docket)
        rec.updated_at = now
        log_audit(db, actor.id, action, "docket", rec.id, {"status": rec.status})
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("saving docket %s failed: %s", docket.id or "(new)", e)
        raise PersistenceError("could not save docket") from e
    db.refresh(rec)
    return to_docket(rec)


def create_docket(db: Session, docket: Docket, actor: User, now: Optional[datetime] = None) -> Docket:
    """Persist a new docket: fresh id and docket number, creator stamped."""
    return save_docket(db, docket.model_copy(update={"id": "", "docket_no": None, "created_by": actor.id}), actor, now)


def delete_docket(db: Session, docket_id: str, reason: str, actor: User) -> DocketDeletionLog:
    if not (reason or "").strip():
        raise ValidationError("a reason is required to delete a docket")
    rec = get_docket_record(db, docket_id)
    entry = DocketDeletionLog(
        docket_id=rec.id,
        client_name=(rec.client or {}).get("name", ""),
        deleted_by=actor.email or "Unknown User",
        reason=reason.strip(),
        deleted_at=datetime.now(timezone.utc),
    )
    try:
        db.add(entry)
        db.delete(rec)
        log_audit(db, actor.id, "docket.delete", "docket", docket_id, {"reason": reason.strip()})
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("deleting docket %s failed: %s", docket_id, e)
        raise PersistenceError("could not delete docket") from e
    db.refresh(entry)
    return entry


# -------------------------
# functional edits
# -------------------------
def add_passenger(docket: Docket, passenger: Optional[Passenger] = None) -> Docket:
    return docket.model_copy(update={"passengers": [*docket.passengers, passenger or Passenger()]})


def update_passenger(docket: Docket, passenger_id: str, **changes) -> Docket:
    if docket.passenger(passenger_id) is None:
        raise NotFoundError(f"passenger {passenger_id} not found")
    passengers = [
        Passenger.model_validate({**p.model_dump(), **changes}) if p.id == passenger_id else p
        for p in docket.passengers
    ]
    return docket.model_copy(update={"passengers": passengers})


def remove_passenger(docket: Docket, passenger_id: str) -> Docket:
    """Drop the passenger and every reference to it (flight details, hotel pax refs)."""
    it = docket.itinerary
    flights = [
        f.model_copy(update={"passenger_details": [pd for pd in f.passenger_details if pd.passenger_id != passenger_id]})
        for f in it.flights
    ]
    hotels = [h.model_copy(update={"pax_refs": [r for r in h.pax_refs if r != passenger_id]}) for h in it.hotels]
    return docket.model_copy(update={
        "passengers": [p for p in docket.passengers if p.id != passenger_id],
        "itinerary": it.model_copy(update={"flights": flights, "hotels": hotels}),
    })


def add_item(docket: Docket, category: str, item=None) -> Docket:
    if category not in ITEM_TYPES:
        raise ValidationError(f"unknown itinerary category: {category}")
    item = item or ITEM_TYPES[category]()
    items = [*getattr(docket.itinerary, category), item]
    return docket.model_copy(update={"itinerary": docket.itinerary.model_copy(update={category: items})})


def update_item(docket: Docket, category: str, item_id: str, **changes) -> Docket:
    """Field edits on a hotel, excursion, transfer or flight header.

    Flight costs go through flight_pricing_service instead.
    """
    if category not in ITEM_TYPES:
        raise ValidationError(f"unknown itinerary category: {category}")
    if category == "flights" and set(changes) & {"uniform_pricing", "common_net_cost", "common_gross_billed", "passenger_details"}:
        raise ValidationError("flight pricing fields are changed through the flight pricing commands")
    model = ITEM_TYPES[category]
    current = getattr(docket.itinerary, category)
    if not any(i.id == item_id for i in current):
        raise NotFoundError(f"{category} item {item_id} not found")
    items = [model.model_validate({**i.model_dump(), **changes}) if i.id == item_id else i for i in current]
    return docket.model_copy(update={"itinerary": docket.itinerary.model_copy(update={category: items})})


def remove_item(docket: Docket, category: str, item_id: str) -> Docket:
    if category not in ITEM_TYPES:
        raise ValidationError(f"unknown itinerary category: {category}")
    items = [i for i in getattr(docket.itinerary, category) if i.id != item_id]
    return docket.model_copy(update={"itinerary": docket.itinerary.model_copy(update={category: items})})


def toggle_hotel_passenger(docket: Docket, hotel_id: str, passenger_id: str) -> Docket:
    hotels = []
    for h in docket.itinerary.hotels:
        if h.id == hotel_id:
            refs = [r for r in h.pax_refs if r != passenger_id] if passenger_id in h.pax_refs else [*h.pax_refs, passenger_id]
            h = h.model_copy(update={"pax_refs": refs})
        hotels.append(h)
    return docket.model_copy(update={"itinerary": docket.itinerary.model_copy(update={"hotels": hotels})})


def add_payment(docket: Docket, amount, date: str, type: PaymentType | str = PaymentType.CASH,
                notes: Optional[str] = None, now: Optional[datetime] = None) -> Docket:
    """Record a payment (newest first) with a matching system comment."""
    now = now or datetime.now(timezone.utc)
    payment = Payment(amount=coerce_money(amount), date=date, type=PaymentType(type), notes=notes)
    comment = Comment(
        id=f"SYS-PAY-{uuid.uuid4().hex[:8]}",
        text=(f"Auto-log: Payment of {format_inr(payment.amount)} recorded. "
              f"Type: {payment.type.value}, Date: {format_date(payment.date)}."),
        timestamp=now.isoformat(),
        author="System",
        is_system=True,
    )
    return docket.model_copy(update={"payments": [payment, *docket.payments], "comments": [comment, *docket.comments]})


def add_comment(docket: Docket, text: str, author: Optional[str] = None) -> Docket:
    if not (text or "").strip():
        raise ValidationError("comment text is required")
    return docket.model_copy(update={"comments": [Comment(text=text.strip(), author=author), *docket.comments]})


def new_docket(**fields) -> Docket:
    return Docket.model_validate({"itinerary": Itinerary().to_json(), **fields})


def merge_passengers_by_name(docket: Docket, names: Iterable[str]) -> tuple[Docket, list[str]]:
    """Add passengers whose names are not on the docket yet (case-insensitive,
    trimmed). Returns the new docket and the ids of every named passenger."""
    wanted = []
    for n in names:
        n = (n or "").strip()
        if n and n.lower() not in [w.lower() for w in wanted]:
            wanted.append(n)
    existing = {p.full_name.strip().lower(): p for p in docket.passengers}
    added = [Passenger(full_name=n) for n in wanted if n.lower() not in existing]
    if added:
        docket = docket.model_copy(update={"passengers": [*docket.passengers, *added]})
    by_name = {p.full_name.strip().lower(): p.id for p in docket.passengers}
    return docket, [by_name[n.lower()] for n in wanted]
