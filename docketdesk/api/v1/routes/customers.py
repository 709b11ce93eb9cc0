from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from docketdesk.db.session import get_db
from docketdesk.api.deps import get_current_user
from docketdesk.models.user import User
from docketdesk.schemas.master import CustomerIn, CustomerOut
from docketdesk.services import customer_service

router = APIRouter(tags=["customers"])


@router.get("/customers", response_model=list[CustomerOut])
def list_customers(q: str = "", db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    if q.strip():
        return customer_service.search_customers(db, q)
    return customer_service.list_customers(db)


@router.post("/customers", response_model=CustomerOut)
def create_customer(body: CustomerIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return customer_service.create_customer(db, body)


@router.get("/customers/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return customer_service.get_customer(db, customer_id)


@router.put("/customers/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: str, body: CustomerIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return customer_service.update_customer(db, customer_id, body)


@router.delete("/customers/{customer_id}")
def delete_customer(customer_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    customer_service.delete_customer(db, customer_id)
    return {"ok": True}
