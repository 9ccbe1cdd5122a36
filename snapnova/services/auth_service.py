"""Business logic for registration, login and the token session lifecycle."""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import RegisterRequest
from ..security.tokens import (
    TokenError,
    decode_access_token,
    decode_refresh_token,
    issue_access_token,
    issue_refresh_token,
)
from . import session_store

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)
_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt."""

    return _pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify that ``password`` matches ``hashed_password``."""

    try:
        return _pwd_context.verify(password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be verified")
        return False


def start_session(db: Session, user: User) -> TokenPair:
    """Mint a token pair and make its refresh token the user's only valid one."""

    pair = TokenPair(issue_access_token(user.id), issue_refresh_token(user.id))
    session_store.set_active_refresh_token(db, user, pair.refresh_token)
    return pair


def register_user(db: Session, payload: RegisterRequest) -> tuple[User, TokenPair]:
    """Persist a new user and open their first session."""

    username = payload.username.strip()
    email = str(payload.email).strip().lower()
    existing = db.scalar(select(User).where(or_(User.email == email, User.username == username)))
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    user = User(username=username, email=email, hashed_password=hash_password(payload.password))
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to register user")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    return user, start_session(db, user)


def login_user(db: Session, email: str, password: str) -> tuple[User, TokenPair]:
    """Authenticate by email and password; evicts any session on other devices."""

    user = db.scalar(select(User).where(User.email == email.strip().lower()))
    if user is None or not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")

    user.is_online = True
    return user, start_session(db, user)


def refresh_session(db: Session, refresh_token: Optional[str]) -> TokenPair:
    """Exchange a refresh token for a new pair, invalidating the presented one."""

    if not refresh_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token required")

    try:
        user_id = decode_refresh_token(refresh_token)
    except TokenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid refresh token") from exc

    if not session_store.validate(db, user_id, refresh_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid refresh token")

    pair = TokenPair(issue_access_token(user_id), issue_refresh_token(user_id))
    if not session_store.rotate(db, user_id, refresh_token, pair.refresh_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid refresh token")
    return pair


def logout_user(db: Session, access_token: Optional[str]) -> None:
    """Clear the caller's session without ever failing.

    The identity is read from the access token with expiry checks disabled so a
    client holding an expired token can still log out cleanly.
    """

    if not access_token:
        return
    try:
        user_id = decode_access_token(access_token, verify_exp=False)
    except TokenError:
        logger.info("Logout called with an unreadable access token")
        return

    try:
        session_store.clear(db, user_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to clear session for user %s during logout", user_id)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    db: Session = Depends(get_session),
) -> User:
    """Resolve the authenticated user from the provided bearer token."""

    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    try:
        user_id = decode_access_token(credentials.credentials)
    except TokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


__all__ = [
    "TokenPair",
    "get_current_user",
    "hash_password",
    "login_user",
    "logout_user",
    "refresh_session",
    "register_user",
    "start_session",
    "verify_password",
]
