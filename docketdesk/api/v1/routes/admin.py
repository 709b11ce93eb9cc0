import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import func

from docketdesk.db.session import get_db
from docketdesk.api.deps import get_current_user, require_roles
from docketdesk.models.user import User
from docketdesk.models.audit_log import AuditLog
from docketdesk.core.security import hash_password
from docketdesk.schemas.master import AgentIn, AgentOut, SupplierIn, SupplierOut
from docketdesk.services import master_data_service
from docketdesk.services.audit_service import log_audit

router = APIRouter(tags=["admin"])

ROLES = ("admin", "user")


@router.get("/admin/users")
def list_users(role: str | None = None, q: str | None = None, limit: int = 50, offset: int = 0,
               db: Session = Depends(get_db),
               me: User = Depends(require_roles("admin"))):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(func.lower(User.email).like(ql) | func.lower(User.full_name).like(ql))
    total = query.count()
    users = query.order_by(User.created_at.desc()).limit(min(limit, 200)).offset(max(offset, 0)).all()
    return {
        "total": total,
        "items": [{"id": u.id, "email": u.email, "fullName": u.full_name, "role": u.role,
                   "isActive": u.is_active, "createdAt": u.created_at.isoformat()} for u in users]
    }


@router.post("/admin/users")
def create_user(email: str, fullName: str = "", role: str = "user", tempPassword: str | None = None,
                db: Session = Depends(get_db),
                me: User = Depends(require_roles("admin"))):
    email_l = email.strip().lower()
    if not email_l:
        raise HTTPException(status_code=400, detail="email required")
    if db.query(User).filter(User.email == email_l).first():
        raise HTTPException(status_code=409, detail="email already exists")
    if role not in ROLES:
        raise HTTPException(status_code=400, detail="invalid role")
    pw = tempPassword or (uuid.uuid4().hex[:10] + "A1!")
    u = User(
        id=str(uuid.uuid4()),
        email=email_l,
        full_name=fullName or "",
        role=role,
        password_hash=hash_password(pw),
        is_active=True,
    )
    db.add(u)
    log_audit(db, me.id, "user.create", "user", u.id, {"email": u.email, "role": role})
    db.commit()
    return {"ok": True, "id": u.id, "email": u.email, "tempPassword": pw}


@router.patch("/admin/users/{user_id}")
def update_user(user_id: str, fullName: str | None = None, role: str | None = None, isActive: bool | None = None,
                db: Session = Depends(get_db),
                me: User = Depends(require_roles("admin"))):
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="not found")
    if fullName is not None:
        u.full_name = fullName
    if role is not None:
        if role not in ROLES:
            raise HTTPException(status_code=400, detail="invalid role")
        u.role = role
    if isActive is not None:
        if u.id == me.id and not isActive:
            raise HTTPException(status_code=400, detail="cannot deactivate yourself")
        u.is_active = isActive
    log_audit(db, me.id, "user.update", "user", u.id, {"role": u.role, "isActive": u.is_active})
    db.commit()
    return {"ok": True}


@router.get("/admin/audit")
def audit_log(limit: int = 100, db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    rows = db.query(AuditLog).order_by(AuditLog.created_at.desc()).limit(min(limit, 500)).all()
    return [{"id": r.id, "actorUserId": r.actor_user_id, "action": r.action, "entityType": r.entity_type,
             "entityId": r.entity_id, "details": r.details_json, "createdAt": r.created_at.isoformat()} for r in rows]


# --- suppliers and agents (readable by every user, edited by admins) ---

@router.get("/suppliers", response_model=list[SupplierOut])
def list_suppliers(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return master_data_service.list_suppliers(db)


@router.post("/suppliers", response_model=SupplierOut)
def create_supplier(body: SupplierIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return master_data_service.create_supplier(db, body)


@router.put("/admin/suppliers/{supplier_id}", response_model=SupplierOut)
def update_supplier(supplier_id: str, body: SupplierIn, db: Session = Depends(get_db),
                    me: User = Depends(require_roles("admin"))):
    return master_data_service.update_supplier(db, supplier_id, body)


@router.delete("/admin/suppliers/{supplier_id}")
def delete_supplier(supplier_id: str, db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    master_data_service.delete_supplier(db, supplier_id)
    return {"ok": True}


@router.get("/agents", response_model=list[AgentOut])
def list_agents(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return master_data_service.list_agents(db)


@router.post("/admin/agents", response_model=AgentOut)
def create_agent(body: AgentIn, db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    return master_data_service.create_agent(db, body)


@router.put("/admin/agents/{agent_id}", response_model=AgentOut)
def update_agent(agent_id: str, body: AgentIn, db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    return master_data_service.update_agent(db, agent_id, body)


@router.delete("/admin/agents/{agent_id}")
def delete_agent(agent_id: str, db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    master_data_service.delete_agent(db, agent_id)
    return {"ok": True}
