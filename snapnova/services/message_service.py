"""Direct messages between two users, including their realtime fanout."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import MediaType, Message, User
from ..schemas import MessageResponse, MessageSendRequest
from .media_service import upload_inline_media
from .presence import EVENT_RECEIVE_MESSAGE, EVENT_SEEN_MESSAGE, relay

logger = logging.getLogger(__name__)

CONVERSATION_LIMIT = 100


def _now() -> datetime:
    return datetime.now(timezone.utc)


def active_message_clause(reference: datetime | None = None):
    """Messages that are not expiring or whose expiry is still ahead."""

    reference = reference or _now()
    return or_(Message.expires_at.is_(None), Message.expires_at > reference)


def _between(user_id: UUID, other_id: UUID):
    return or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_id),
        and_(Message.sender_id == other_id, Message.receiver_id == user_id),
    )


def message_payload(message: Message) -> dict[str, Any]:
    return MessageResponse.model_validate(message).model_dump(mode="json")


def list_conversation(db: Session, *, user_id: UUID, other_id: UUID) -> list[Message]:
    """Return the latest messages of a thread in chronological order."""

    stmt = (
        select(Message)
        .where(_between(user_id, other_id), active_message_clause())
        .order_by(Message.created_at.desc())
        .limit(CONVERSATION_LIMIT)
    )
    return list(reversed(db.scalars(stmt).all()))


def list_conversations(db: Session, *, user_id: UUID) -> list[tuple[User, Message]]:
    """Return ``(partner, last_message)`` pairs ordered by most recent activity."""

    stmt = (
        select(Message)
        .where(
            or_(Message.sender_id == user_id, Message.receiver_id == user_id),
            active_message_clause(),
        )
        .order_by(Message.created_at.desc())
    )

    latest: dict[UUID, Message] = {}
    for message in db.scalars(stmt):
        partner_id = message.receiver_id if message.sender_id == user_id else message.sender_id
        latest.setdefault(partner_id, message)

    if not latest:
        return []

    partners = {user.id: user for user in db.scalars(select(User).where(User.id.in_(list(latest))))}
    return [(partners[partner_id], message) for partner_id, message in latest.items() if partner_id in partners]


async def send_message(db: Session, *, sender: User, payload: MessageSendRequest) -> Message:
    """Persist a message and push it to the receiver's room.

    The relay push is best-effort; an offline receiver picks the message up
    through the conversation endpoint.
    """

    if payload.receiver_id == sender.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot message yourself")
    if db.get(User, payload.receiver_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    text = (payload.text or "").strip()
    media_url = ""
    media_type = MediaType.TEXT.value
    if payload.media_data:
        media_url, detected = await upload_inline_media(payload.media_data, folder="messages")
        media_type = payload.media_type or detected
    elif not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message text or media is required")

    message = Message(
        sender_id=sender.id,
        receiver_id=payload.receiver_id,
        text=text,
        media_url=media_url,
        media_type=media_type,
        is_snap=payload.is_snap,
        snap_duration=payload.snap_duration,
    )
    try:
        db.add(message)
        db.commit()
        db.refresh(message)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to store message from %s", sender.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    await relay.route_to_user(message.receiver_id, EVENT_RECEIVE_MESSAGE, message_payload(message))
    return message


async def mark_seen(db: Session, *, reader: User, sender_id: UUID) -> int:
    """Mark every unseen message from ``sender_id`` to ``reader`` as seen."""

    result = db.execute(
        update(Message)
        .where(
            Message.sender_id == sender_id,
            Message.receiver_id == reader.id,
            Message.is_seen.is_(False),
        )
        .values(is_seen=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    await relay.route_to_user(sender_id, EVENT_SEEN_MESSAGE, {"by": str(reader.id)})
    return result.rowcount or 0


def delete_message(db: Session, *, user: User, message_id: UUID) -> None:
    message = db.get(Message, message_id)
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    if user.id not in (message.sender_id, message.receiver_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this message")
    db.delete(message)
    db.commit()


__all__ = [
    "CONVERSATION_LIMIT",
    "active_message_clause",
    "delete_message",
    "list_conversation",
    "list_conversations",
    "mark_seen",
    "message_payload",
    "send_message",
]
