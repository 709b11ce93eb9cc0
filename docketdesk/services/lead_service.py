import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from docketdesk.core.errors import NotFoundError, PersistenceError, ValidationError
from docketdesk.models.lead import LeadRecord
from docketdesk.models.user import User
from docketdesk.schemas.docket import Client, Docket, LeadSource
from docketdesk.schemas.lead import Lead, LeadIn, LeadStatus, MAX_ITINERARY_DAYS, Quotation, TravelDates
from docketdesk.services.audit_service import log_audit
from docketdesk.services.docket_service import create_docket, new_docket

logger = logging.getLogger(__name__)


def to_lead(rec: LeadRecord) -> Lead:
    return Lead.model_validate({
        "id": rec.id,
        "name": rec.name,
        "email": rec.email,
        "phone": rec.phone,
        "company": rec.company,
        "source": rec.source,
        "status": rec.status,
        "description": rec.description,
        "assignedTo": rec.assigned_to,
        "expectedValue": rec.expected_value,
        "createdDate": rec.created_date,
        "lastContactDate": rec.last_contact_date,
        "nextFollowUpDate": rec.next_follow_up_date,
        "notes": rec.notes,
        "travelDates": rec.travel_dates or {},
        "numberOfPax": rec.number_of_pax or 1,
        "numberOfNights": rec.number_of_nights or 0,
        "itinerary": rec.itinerary or {},
        "quotation": rec.quotation or {},
        "createdAt": rec.created_at,
        "updatedAt": rec.updated_at,
    })


def _blank(v: Optional[str]) -> Optional[str]:
    v = (v or "").strip()
    return v or None


def _itinerary(days: Optional[dict]) -> dict:
    """Keep day1..day10 entries with text."""
    out = {}
    for n in range(1, MAX_ITINERARY_DAYS + 1):
        text = (days or {}).get(f"day{n}") or ""
        if text.strip():
            out[f"day{n}"] = text
    return out


def _apply(rec: LeadRecord, body: LeadIn) -> None:
    if not body.name.strip():
        raise ValidationError("lead name is required")
    rec.name = body.name.strip()
    rec.email = body.email
    rec.phone = body.phone
    rec.company = body.company
    rec.source = body.source
    rec.status = LeadStatus(body.status).value
    rec.description = body.description
    rec.assigned_to = body.assigned_to
    rec.expected_value = body.expected_value
    rec.created_date = (body.created_date or date.today()).isoformat()
    rec.last_contact_date = _blank(body.last_contact_date)
    rec.next_follow_up_date = _blank(body.next_follow_up_date)
    rec.notes = body.notes
    rec.travel_dates = TravelDates.model_validate(body.travel_dates or {}).to_json()
    rec.number_of_pax = max(int(body.number_of_pax or 1), 1)
    rec.number_of_nights = max(int(body.number_of_nights or 0), 0)
    rec.itinerary = _itinerary(body.itinerary)
    rec.quotation = Quotation.model_validate(body.quotation or {}).to_json()
    rec.updated_at = datetime.now(timezone.utc)


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed: %s", what, e)
        raise PersistenceError(f"could not {what}") from e


def list_leads(db: Session, status: Optional[str] = None) -> list[Lead]:
    q = select(LeadRecord).order_by(LeadRecord.created_at.desc())
    if status:
        q = q.where(LeadRecord.status == LeadStatus(status).value)
    return [to_lead(r) for r in db.execute(q).scalars().all()]


def leads_by_status(db: Session) -> dict[str, list[Lead]]:
    grouped = {s.value: [] for s in LeadStatus}
    for lead in list_leads(db):
        grouped[lead.status.value].append(lead)
    return grouped


def get_lead_record(db: Session, lead_id: str) -> LeadRecord:
    rec = db.get(LeadRecord, lead_id)
    if not rec:
        raise NotFoundError(f"lead {lead_id} not found")
    return rec


def get_lead(db: Session, lead_id: str) -> Lead:
    return to_lead(get_lead_record(db, lead_id))


def create_lead(db: Session, body: LeadIn, actor: User) -> Lead:
    rec = LeadRecord(id=str(uuid.uuid4()))
    _apply(rec, body)
    db.add(rec)
    log_audit(db, actor.id, "lead.create", "lead", rec.id, {"name": rec.name})
    _commit(db, "create lead")
    db.refresh(rec)
    return to_lead(rec)


def update_lead(db: Session, lead_id: str, body: LeadIn, actor: User) -> Lead:
    rec = get_lead_record(db, lead_id)
    _apply(rec, body)
    log_audit(db, actor.id, "lead.update", "lead", rec.id, {"status": rec.status})
    _commit(db, "update lead")
    db.refresh(rec)
    return to_lead(rec)


def set_lead_status(db: Session, lead_id: str, status: LeadStatus | str, actor: User) -> Lead:
    rec = get_lead_record(db, lead_id)
    rec.status = LeadStatus(status).value
    rec.updated_at = datetime.now(timezone.utc)
    log_audit(db, actor.id, "lead.status", "lead", rec.id, {"status": rec.status})
    _commit(db, "update lead status")
    db.refresh(rec)
    return to_lead(rec)


def delete_lead(db: Session, lead_id: str, actor: User) -> None:
    rec = get_lead_record(db, lead_id)
    db.delete(rec)
    log_audit(db, actor.id, "lead.delete", "lead", lead_id)
    _commit(db, "delete lead")


def _lead_source(source: str) -> LeadSource:
    try:
        return LeadSource(source)
    except ValueError:
        return LeadSource.OTHER


def convert_lead_to_docket(db: Session, lead_id: str, actor: User) -> Docket:
    """Open a docket for the lead's client and mark the lead final."""
    rec = get_lead_record(db, lead_id)
    docket = new_docket(client=Client(
        name=rec.name,
        contact_info=rec.phone or rec.email,
        lead_source=_lead_source(rec.source),
    ))
    rec.status = LeadStatus.FINAL.value
    rec.updated_at = datetime.now(timezone.utc)
    # committed together with the docket
    return create_docket(db, docket, actor)
