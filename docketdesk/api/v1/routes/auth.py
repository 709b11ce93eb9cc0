import logging

from fastapi import APIRouter, Depends, HTTPException
from jose import JWTError
from sqlalchemy.orm import Session

from docketdesk.db.session import get_db
from docketdesk.schemas.auth import ChangePasswordRequest, LoginRequest, RefreshRequest, TokenPair
from docketdesk.models.user import User
from docketdesk.core.config import settings
from docketdesk.core.security import (
    create_access_token, create_refresh_token, decode_token, hash_password, verify_password,
)
from docketdesk.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _tokens(user: User) -> TokenPair:
    return TokenPair(access_token=create_access_token(user.id), refresh_token=create_refresh_token(user.id))


@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if user.email in settings.admin_emails() and user.role != "admin":
        logger.info("promoting %s to admin (ADMIN_EMAILS)", user.email)
        user.role = "admin"
        db.commit()
    return _tokens(user)


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_token(body.refresh_token, expected_type="refresh")
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _tokens(user)


@router.get("/auth/me")
def me(me: User = Depends(get_current_user)):
    """Return current user info including role."""
    return {
        "id": me.id,
        "email": me.email,
        "fullName": me.full_name or "",
        "role": me.role,
    }


@router.post("/auth/change-password")
def change_password(body: ChangePasswordRequest,
                    db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    if not verify_password(body.old_password, me.password_hash):
        raise HTTPException(status_code=400, detail="Old password incorrect")
    if len(body.new_password) < 8:
        raise HTTPException(status_code=400, detail="Password too short")
    me.password_hash = hash_password(body.new_password)
    db.commit()
    return {"ok": True}
