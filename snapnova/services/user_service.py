"""Profile lookups, profile edits and the user directory."""
from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User
from ..schemas import ProfileUpdateRequest
from .friendship_service import list_friend_ids
from .media_service import upload_inline_media

SEARCH_LIMIT = 20
SUGGESTION_LIMIT = 10


def get_profile(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def update_profile(db: Session, *, user: User, payload: ProfileUpdateRequest) -> User:
    """Apply profile updates; only fields sent by the client are touched.

    ``avatar`` is only honoured when it is an inline data URI, anything else
    leaves the stored avatar untouched.
    """

    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("bio") is not None:
        user.bio = update_data["bio"].strip()

    avatar = update_data.get("avatar")
    if avatar and avatar.startswith("data:"):
        user.avatar_url, _ = await upload_inline_media(avatar, folder="avatars")

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    db.refresh(user)
    return user


def search_users(db: Session, *, user: User, query: str | None) -> list[User]:
    """Case-insensitive substring match on username or email, excluding the caller."""

    term = (query or "").strip().lower()
    if not term:
        return []
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    stmt = (
        select(User)
        .where(
            User.id != user.id,
            or_(
                func.lower(User.username).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
            ),
        )
        .order_by(User.username.asc())
        .limit(SEARCH_LIMIT)
    )
    return list(db.scalars(stmt))


def suggested_users(db: Session, *, user: User) -> list[User]:
    excluded = [user.id, *list_friend_ids(db, user.id)]
    stmt = select(User).where(User.id.not_in(excluded)).order_by(User.created_at.desc()).limit(SUGGESTION_LIMIT)
    return list(db.scalars(stmt))


__all__ = ["get_profile", "search_users", "suggested_users", "update_profile"]
