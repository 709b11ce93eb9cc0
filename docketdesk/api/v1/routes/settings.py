from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from docketdesk.db.session import get_db
from docketdesk.api.deps import get_current_user, require_roles
from docketdesk.models.user import User
from docketdesk.services.audit_service import log_audit
from docketdesk.services.settings_service import get_company_settings, update_company_settings

router = APIRouter(tags=["settings"])


@router.get("/settings/company")
def get_settings(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return get_company_settings(db).to_json()


@router.put("/settings/company")
def put_settings(body: dict, db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    s = update_company_settings(db, body)
    log_audit(db, me.id, "settings.update", "settings", "company", {k: v for k, v in body.items()})
    db.commit()
    return s.to_json()
