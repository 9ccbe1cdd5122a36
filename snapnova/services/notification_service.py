"""Notification persistence and realtime fanout."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from ..models import Notification, User
from .presence import EVENT_NOTIFICATION, relay

logger = logging.getLogger(__name__)

NOTIFICATION_PAGE_SIZE = 50


class NotificationType(StrEnum):
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    SNAP = "snap"


def list_notifications(db: Session, user_id: UUID, *, limit: int = NOTIFICATION_PAGE_SIZE) -> list[Notification]:
    """Return notifications for the supplied recipient ordered newest first."""

    stmt = (
        select(Notification)
        .options(selectinload(Notification.sender))
        .where(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def count_unread_notifications(db: Session, user_id: UUID) -> int:
    stmt = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.recipient_id == user_id, Notification.read.is_(False))
    )
    return int(db.scalar(stmt) or 0)


def build_notification(
    *,
    recipient_id: UUID,
    sender_id: UUID,
    content: str,
    type_: NotificationType | str,
) -> Notification:
    """Create an unsaved notification so callers can commit it with other writes."""

    return Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=str(type_),
        content=content,
        created_at=datetime.now(timezone.utc),
    )


def mark_all_read(db: Session, recipient_id: UUID) -> int:
    """Flip every unread notification of ``recipient_id`` to read."""

    stmt = (
        update(Notification)
        .where(Notification.recipient_id == recipient_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount or 0


def push_notification(
    recipient_id: UUID,
    *,
    type_: NotificationType | str,
    content: str,
    sender: User | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    """Send a ``notification`` relay event; dropped when the recipient is offline."""

    payload: dict[str, Any] = {"type": str(type_), "message": content}
    if sender is not None:
        payload["from"] = {"id": str(sender.id), "username": sender.username, "avatar_url": sender.avatar_url}
    if extra:
        payload.update(extra)
    relay.schedule_to_user(recipient_id, EVENT_NOTIFICATION, payload)


__all__ = [
    "NOTIFICATION_PAGE_SIZE",
    "NotificationType",
    "build_notification",
    "count_unread_notifications",
    "list_notifications",
    "mark_all_read",
    "push_notification",
]
