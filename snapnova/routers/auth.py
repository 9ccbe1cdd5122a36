"""Authentication routes: registration, login and the token session lifecycle."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import (
    AuthResponse,
    Envelope,
    LoginRequest,
    ProfileEnvelope,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
    UserProfile,
    UserSummary,
)
from ..services import get_current_user, list_friends, login_user, logout_user, refresh_session, register_user

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def to_user_profile(db: Session, user: User) -> UserProfile:
    profile = UserProfile.model_validate(user)
    profile.friends = [UserSummary.model_validate(friend) for friend in list_friends(db, user.id)]
    return profile


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_endpoint(
    payload: RegisterRequest,
    db: Session = Depends(get_session),
) -> AuthResponse:
    user, tokens = register_user(db, payload)
    return AuthResponse(
        message="Registration successful",
        user=to_user_profile(db, user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


@router.post("/login", response_model=AuthResponse)
async def login_endpoint(
    payload: LoginRequest,
    db: Session = Depends(get_session),
) -> AuthResponse:
    user, tokens = login_user(db, str(payload.email), payload.password)
    return AuthResponse(
        message="Login successful",
        user=to_user_profile(db, user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


@router.post("/refresh", response_model=TokenPairResponse)
async def refresh_endpoint(
    payload: RefreshRequest | None = None,
    db: Session = Depends(get_session),
) -> TokenPairResponse:
    tokens = refresh_session(db, payload.refresh_token if payload else None)
    return TokenPairResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/logout", response_model=Envelope)
async def logout_endpoint(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_session),
) -> Envelope:
    try:
        logout_user(db, _bearer_token(authorization))
    except Exception:
        logger.exception("Logout cleanup failed")
    return Envelope(message="Logged out successfully")


@router.get("/me", response_model=ProfileEnvelope)
async def me_endpoint(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileEnvelope:
    return ProfileEnvelope(user=to_user_profile(db, current_user))


__all__ = ["router", "to_user_profile"]
