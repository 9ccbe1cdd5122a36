"""Disappearing snaps: media messages whose countdown starts on first view."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Message, User
from ..schemas import SnapUploadRequest
from .media_service import upload_inline_media
from .message_service import message_payload
from .notification_service import NotificationType, push_notification
from .presence import EVENT_RECEIVE_MESSAGE, relay

logger = logging.getLogger(__name__)

SNAP_NOTIFICATION_TEXT = "You received a new snap!"


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def upload_snap(db: Session, *, sender: User, payload: SnapUploadRequest) -> Message:
    if not payload.media_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Media is required for snap")
    if db.get(User, payload.receiver_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    media_url, detected = await upload_inline_media(payload.media_data, folder="snaps")
    snap = Message(
        sender_id=sender.id,
        receiver_id=payload.receiver_id,
        media_url=media_url,
        media_type=payload.media_type or detected,
        is_snap=True,
        snap_duration=payload.snap_duration,
    )
    try:
        db.add(snap)
        db.commit()
        db.refresh(snap)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to store snap from %s", sender.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    await relay.route_to_user(snap.receiver_id, EVENT_RECEIVE_MESSAGE, message_payload(snap))
    push_notification(snap.receiver_id, type_=NotificationType.SNAP, content=SNAP_NOTIFICATION_TEXT, sender=sender)
    return snap


def open_snap(db: Session, *, viewer: User, snap_id: UUID) -> Message:
    """Return a snap, starting its countdown the first time the receiver opens it."""

    snap = db.get(Message, snap_id)
    now = _now()
    if snap is None or not snap.is_snap or snap.is_expired(reference=now):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Snap not found")
    if viewer.id not in (snap.sender_id, snap.receiver_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to view this snap")

    if snap.expires_at is None and snap.receiver_id == viewer.id:
        snap.expires_at = now + timedelta(seconds=snap.snap_duration)
        snap.is_seen = True
        db.commit()
        db.refresh(snap)
    return snap


def delete_snap(db: Session, *, user: User, snap_id: UUID) -> None:
    snap = db.get(Message, snap_id)
    if snap is None or not snap.is_snap:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Snap not found")
    if user.id not in (snap.sender_id, snap.receiver_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this snap")
    db.delete(snap)
    db.commit()


__all__ = ["SNAP_NOTIFICATION_TEXT", "delete_snap", "open_snap", "upload_snap"]
