"""Persistence of the single active refresh token per user."""
from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..models import User

logger = logging.getLogger(__name__)


def set_active_refresh_token(db: Session, user: User, token: str) -> None:
    """Store ``token`` as the only valid refresh token for ``user``.

    Any previously issued refresh token stops validating once this commits.
    """

    user.refresh_token = token
    db.add(user)
    db.commit()


def validate(db: Session, user_id: UUID, token: str | None) -> bool:
    """Return ``True`` only when ``token`` equals the stored refresh token."""

    if not token:
        return False
    stored = db.scalar(select(User.refresh_token).where(User.id == user_id)) or ""
    if not stored:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), token.encode("utf-8"))


def rotate(db: Session, user_id: UUID, presented: str, replacement: str) -> bool:
    """Swap ``presented`` for ``replacement`` if it is still the active token.

    The swap is a single conditional UPDATE so two refreshes racing with the same
    token cannot both succeed.
    """

    result = db.execute(
        update(User)
        .where(User.id == user_id, User.refresh_token == presented)
        .values(refresh_token=replacement)
    )
    db.commit()
    swapped = result.rowcount == 1
    if not swapped:
        logger.info("Refresh token rotation rejected for user %s", user_id)
    return swapped


def clear(db: Session, user_id: UUID) -> bool:
    """Forget the active refresh token and mark the user offline."""

    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .values(refresh_token=None, is_online=False, last_seen_at=datetime.now(timezone.utc))
    )
    db.commit()
    return result.rowcount == 1


__all__ = ["set_active_refresh_token", "validate", "rotate", "clear"]
