import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from docketdesk.db.session import SessionLocal
from docketdesk.core.config import settings
from docketdesk.core.security import hash_password
from docketdesk.models.user import User
from docketdesk.models.supplier import Agent, Supplier
from docketdesk.services.settings_service import ensure_company_settings_row

logger = logging.getLogger(__name__)

DEFAULT_SUPPLIERS = [
    ("IndiGo Corporate Desk", "Ravi Sharma", "+91 98100 00001"),
    ("Taj Hotels Reservations", "Anita Rao", "+91 98100 00002"),
]
DEFAULT_AGENTS = [
    ("Priya Menon", "priya@wanderwyze.com"),
    ("Arjun Kapoor", "arjun@wanderwyze.com"),
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            full_name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "admin@wanderwyze.com", "admin12345", "admin", "Admin")
        ensure_user(db, "agent@wanderwyze.com", "agent12345", "user", "Agent")
        for email in settings.admin_emails():
            u = db.query(User).filter(User.email == email).first()
            if u and u.role != "admin":
                u.role = "admin"
        db.commit()

        ensure_company_settings_row(db)
        db.commit()

        if not db.query(Supplier).first():
            for name, person, number in DEFAULT_SUPPLIERS:
                db.add(Supplier(id=str(uuid.uuid4()), name=name, contact_person=person, contact_number=number))
            db.commit()
        if not db.query(Agent).first():
            for name, contact in DEFAULT_AGENTS:
                db.add(Agent(id=str(uuid.uuid4()), name=name, contact_info=contact))
            db.commit()
        logger.info("seed complete")
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
