import os
import uuid

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("INVOICE_LOCAL_DIR", "./data/test-invoices")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from docketdesk.db.session import Base, get_db
from docketdesk.core.security import create_access_token, hash_password
from docketdesk.models.user import User
from docketdesk.models.docket import DocketRecord  # noqa: F401
from docketdesk.models.invoice import InvoiceRecord  # noqa: F401
from docketdesk.models.company_setting import CompanySettingRow  # noqa: F401
from docketdesk.models.deletion_log import DocketDeletionLog  # noqa: F401
from docketdesk.models.audit_log import AuditLog  # noqa: F401
from docketdesk.models.supplier import Supplier, Agent  # noqa: F401
from docketdesk.models.customer import Customer  # noqa: F401
from docketdesk.models.lead import LeadRecord  # noqa: F401
from docketdesk.schemas.docket import (
    Docket, Flight, FlightPassengerDetail, Hotel, Itinerary, Passenger, Payment,
)


@pytest.fixture()
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


def _user(db, email: str, role: str) -> User:
    u = User(id=str(uuid.uuid4()), email=email, full_name=email.split("@")[0], role=role,
             password_hash=hash_password("password123"), is_active=True)
    db.add(u)
    db.commit()
    return u


@pytest.fixture()
def admin(db):
    return _user(db, "admin@example.com", "admin")


@pytest.fixture()
def agent_user(db):
    return _user(db, "agent@example.com", "user")


@pytest.fixture()
def other_user(db):
    return _user(db, "other@example.com", "user")


@pytest.fixture()
def client(session_factory):
    from docketdesk.main import app

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def sample_docket() -> Docket:
    """One flight with two passengers, one hotel, two payments totalling 20,000."""
    a = Passenger(id="PAX-A", full_name="Asha Verma", address="12 MG Road, Bengaluru, Karnataka, 560001")
    b = Passenger(id="PAX-B", full_name="Vikram Verma")
    flight = Flight(
        id="FL-1", airline="IndiGo", departure_airport="DEL", arrival_airport="GOI", departure_date="2026-12-01",
        passenger_details=[
            FlightPassengerDetail(passenger_id="PAX-A", net_cost=8000, gross_billed=10000),
            FlightPassengerDetail(passenger_id="PAX-B", net_cost=12000, gross_billed=15000),
        ],
    )
    hotel = Hotel(id="HO-1", name="Taj Fort Aguada", check_in="2026-12-01", net_cost=4000, gross_billed=5000,
                  pax_refs=["PAX-A", "PAX-B"])
    return Docket(
        client={"name": "Asha Verma", "contactInfo": "+91 90000 00000"},
        passengers=[a, b],
        itinerary=Itinerary(flights=[flight], hotels=[hotel]),
        payments=[Payment(amount=15000, date="2026-10-01"), Payment(amount=5000, date="2026-10-05")],
    )
