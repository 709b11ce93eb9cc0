import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from docketdesk.core.errors import NotFoundError, ValidationError
from docketdesk.models.supplier import Agent, Supplier
from docketdesk.schemas.master import AgentIn, SupplierIn


def list_suppliers(db: Session) -> list[Supplier]:
    return db.execute(select(Supplier).order_by(Supplier.name.asc())).scalars().all()


def create_supplier(db: Session, body: SupplierIn) -> Supplier:
    if not body.name.strip():
        raise ValidationError("supplier name is required")
    s = Supplier(id=str(uuid.uuid4()), name=body.name.strip(),
                 contact_person=body.contact_person, contact_number=body.contact_number)
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def update_supplier(db: Session, supplier_id: str, body: SupplierIn) -> Supplier:
    s = db.get(Supplier, supplier_id)
    if not s:
        raise NotFoundError(f"supplier {supplier_id} not found")
    s.name = body.name.strip() or s.name
    s.contact_person = body.contact_person
    s.contact_number = body.contact_number
    db.commit()
    db.refresh(s)
    return s


def delete_supplier(db: Session, supplier_id: str) -> None:
    s = db.get(Supplier, supplier_id)
    if not s:
        raise NotFoundError(f"supplier {supplier_id} not found")
    db.delete(s)
    db.commit()


def list_agents(db: Session) -> list[Agent]:
    return db.execute(select(Agent).order_by(Agent.name.asc())).scalars().all()


def create_agent(db: Session, body: AgentIn) -> Agent:
    if not body.name.strip():
        raise ValidationError("agent name is required")
    a = Agent(id=str(uuid.uuid4()), name=body.name.strip(), contact_info=body.contact_info)
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


def update_agent(db: Session, agent_id: str, body: AgentIn) -> Agent:
    a = db.get(Agent, agent_id)
    if not a:
        raise NotFoundError(f"agent {agent_id} not found")
    a.name = body.name.strip() or a.name
    a.contact_info = body.contact_info
    db.commit()
    db.refresh(a)
    return a


def delete_agent(db: Session, agent_id: str) -> None:
    a = db.get(Agent, agent_id)
    if not a:
        raise NotFoundError(f"agent {agent_id} not found")
    db.delete(a)
    db.commit()


def agent_names(db: Session) -> dict[str, str]:
    return {a.id: a.name for a in list_agents(db)}
