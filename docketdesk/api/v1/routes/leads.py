from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from docketdesk.db.session import get_db
from docketdesk.api.deps import get_current_user
from docketdesk.models.user import User
from docketdesk.schemas.lead import LeadIn, LeadStatus
from docketdesk.services import lead_service
from docketdesk.services.cost_service import docket_summary

router = APIRouter(tags=["leads"])


@router.get("/leads")
def list_leads(status: LeadStatus | None = None, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return [l.to_json() for l in lead_service.list_leads(db, status)]


@router.get("/leads/pipeline")
def pipeline(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {k: [l.to_json() for l in v] for k, v in lead_service.leads_by_status(db).items()}


@router.post("/leads")
def create_lead(body: LeadIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return lead_service.create_lead(db, body, me).to_json()


@router.get("/leads/{lead_id}")
def get_lead(lead_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return lead_service.get_lead(db, lead_id).to_json()


@router.put("/leads/{lead_id}")
def update_lead(lead_id: str, body: LeadIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return lead_service.update_lead(db, lead_id, body, me).to_json()


@router.post("/leads/{lead_id}/status/{status}")
def set_status(lead_id: str, status: LeadStatus, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return lead_service.set_lead_status(db, lead_id, status, me).to_json()


@router.delete("/leads/{lead_id}")
def delete_lead(lead_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    lead_service.delete_lead(db, lead_id, me)
    return {"ok": True}


@router.post("/leads/{lead_id}/convert")
def convert(lead_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    d = lead_service.convert_lead_to_docket(db, lead_id, me)
    return {"docket": d.to_json(), "summary": docket_summary(d).to_json()}
