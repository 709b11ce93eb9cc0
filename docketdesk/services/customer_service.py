import logging
import re
import uuid

from sqlalchemy import select, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from docketdesk.core.errors import NotFoundError, PersistenceError, ValidationError
from docketdesk.models.customer import Customer
from docketdesk.schemas.master import CustomerIn

logger = logging.getLogger(__name__)

_CODE = re.compile(r"^CUST-(\d+)$")


def next_customer_code(db: Session) -> str:
    codes = db.execute(select(Customer.customer_code)).scalars().all()
    highest = max((int(m.group(1)) for m in map(_CODE.match, codes) if m), default=0)
    return f"CUST-{highest + 1:04d}"


def list_customers(db: Session) -> list[Customer]:
    return db.execute(select(Customer).order_by(Customer.name.asc())).scalars().all()


def search_customers(db: Session, query: str, limit: int = 20) -> list[Customer]:
    q = (query or "").strip()
    if not q:
        return []
    like = f"%{q}%"
    return db.execute(
        select(Customer)
        .where(or_(Customer.name.ilike(like), Customer.customer_code.ilike(like)))
        .order_by(Customer.name.asc())
        .limit(limit)
    ).scalars().all()


def get_customer(db: Session, customer_id: str) -> Customer:
    c = db.get(Customer, customer_id)
    if not c:
        raise NotFoundError(f"customer {customer_id} not found")
    return c


def create_customer(db: Session, body: CustomerIn) -> Customer:
    if not body.name.strip():
        raise ValidationError("customer name is required")
    c = Customer(
        id=str(uuid.uuid4()),
        customer_code=next_customer_code(db),
        name=body.name.strip(),
        email=body.email,
        phone=body.phone,
        address=body.address,
        gstin=body.gstin.strip().upper(),
    )
    db.add(c)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("creating customer %s failed: %s", body.name, e)
        raise PersistenceError("could not save customer") from e
    db.refresh(c)
    return c


def update_customer(db: Session, customer_id: str, body: CustomerIn) -> Customer:
    c = get_customer(db, customer_id)
    if not body.name.strip():
        raise ValidationError("customer name is required")
    c.name = body.name.strip()
    c.email = body.email
    c.phone = body.phone
    c.address = body.address
    c.gstin = body.gstin.strip().upper()
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("updating customer %s failed: %s", customer_id, e)
        raise PersistenceError("could not save customer") from e
    db.refresh(c)
    return c


def delete_customer(db: Session, customer_id: str) -> None:
    db.delete(get_customer(db, customer_id))
    db.commit()
