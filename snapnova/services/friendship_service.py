"""Friend request state machine and the friendship edge it produces.

``pending -> accepted`` and ``pending -> rejected`` are the only transitions a
response can make; a rejected request flips back to ``pending`` when its sender
asks again. Acceptance writes the friendship edge, a seed chat message and a
notification in the same transaction as the status flip.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..models import FriendRequest, FriendRequestStatus, Friendship, MediaType, Message, User
from .notification_service import NotificationType, build_notification, push_notification

logger = logging.getLogger(__name__)

WELCOME_TEXT = "\U0001F44B Hey! We're now connected on Snapnova!"

PENDING = FriendRequestStatus.PENDING.value
ACCEPTED = FriendRequestStatus.ACCEPTED.value
REJECTED = FriendRequestStatus.REJECTED.value


def _ordered_pair(a: UUID, b: UUID) -> tuple[UUID, UUID]:
    return (a, b) if str(a) < str(b) else (b, a)


def _pair_clause(first: UUID, second: UUID):
    return or_(
        and_(FriendRequest.sender_id == first, FriendRequest.recipient_id == second),
        and_(FriendRequest.sender_id == second, FriendRequest.recipient_id == first),
    )


def existing_friendship(db: Session, user_id: UUID, friend_id: UUID) -> Friendship | None:
    first, second = _ordered_pair(user_id, friend_id)
    stmt = select(Friendship).where(and_(Friendship.user_a_id == first, Friendship.user_b_id == second))
    return db.scalars(stmt).first()


def are_friends(db: Session, user_id: UUID, friend_id: UUID) -> bool:
    return existing_friendship(db, user_id, friend_id) is not None


def list_friend_ids(db: Session, user_id: UUID) -> list[UUID]:
    stmt = (
        select(Friendship)
        .where(or_(Friendship.user_a_id == user_id, Friendship.user_b_id == user_id))
        .order_by(Friendship.created_at.asc())
    )
    return [friendship.other(user_id) for friendship in db.scalars(stmt)]


def list_friends(db: Session, user_id: UUID) -> list[User]:
    friend_ids = list_friend_ids(db, user_id)
    if not friend_ids:
        return []
    users = {user.id: user for user in db.scalars(select(User).where(User.id.in_(friend_ids)))}
    return [users[friend_id] for friend_id in friend_ids if friend_id in users]


def send_friend_request(db: Session, *, sender: User, recipient_id: UUID) -> FriendRequest:
    sender_id = sender.id
    if recipient_id == sender_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot send request to yourself")

    recipient = db.get(User, recipient_id)
    if recipient is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if are_friends(db, sender_id, recipient_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already friends")

    pending = db.scalar(
        select(FriendRequest).where(_pair_clause(sender_id, recipient_id), FriendRequest.status == PENDING)
    )
    if pending is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A pending request already exists")

    request = db.scalar(
        select(FriendRequest).where(FriendRequest.sender_id == sender_id, FriendRequest.recipient_id == recipient_id)
    )
    if request is not None and request.status == REJECTED:
        request.status = PENDING
        request.responded_at = None
        request.created_at = datetime.now(timezone.utc)
    elif request is None:
        request = FriendRequest(sender_id=sender_id, recipient_id=recipient_id, status=PENDING)
        db.add(request)
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request already exists")

    content = f"{sender.username} sent you a contact request"
    db.add(
        build_notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            content=content,
            type_=NotificationType.FRIEND_REQUEST,
        )
    )
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to send friend request")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    db.refresh(request)
    push_notification(recipient_id, type_=NotificationType.FRIEND_REQUEST, content=content, sender=sender)
    return request


def list_friend_requests(db: Session, *, user: User) -> tuple[list[FriendRequest], list[FriendRequest]]:
    """Return ``(incoming, sent)`` pending requests, newest first."""

    base = select(FriendRequest).options(
        selectinload(FriendRequest.sender), selectinload(FriendRequest.recipient)
    )
    incoming_stmt = (
        base.where(FriendRequest.recipient_id == user.id, FriendRequest.status == PENDING)
        .order_by(FriendRequest.created_at.desc())
    )
    sent_stmt = (
        base.where(FriendRequest.sender_id == user.id, FriendRequest.status == PENDING)
        .order_by(FriendRequest.created_at.desc())
    )
    return list(db.scalars(incoming_stmt)), list(db.scalars(sent_stmt))


def _load_for_response(db: Session, *, request_id: UUID, recipient: User) -> FriendRequest:
    request = db.get(FriendRequest, request_id)
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if request.recipient_id != recipient.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to respond to this request")
    if request.status != PENDING:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request is no longer pending")
    return request


def _claim(db: Session, request_id: UUID, new_status: str) -> None:
    """Move a request out of ``pending``; only one concurrent caller can win."""

    result = db.execute(
        update(FriendRequest)
        .where(FriendRequest.id == request_id, FriendRequest.status == PENDING)
        .values(status=new_status, responded_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request is no longer pending")


def accept_friend_request(db: Session, *, request_id: UUID, recipient: User) -> Friendship:
    request = _load_for_response(db, request_id=request_id, recipient=recipient)
    sender_id = request.sender_id
    recipient_id = recipient.id

    _claim(db, request_id, ACCEPTED)

    friendship = existing_friendship(db, sender_id, recipient_id)
    if friendship is None:
        user_a_id, user_b_id = _ordered_pair(sender_id, recipient_id)
        friendship = Friendship(user_a_id=user_a_id, user_b_id=user_b_id)
        db.add(friendship)

    db.add(
        Message(
            sender_id=sender_id,
            receiver_id=recipient_id,
            text=WELCOME_TEXT,
            media_type=MediaType.TEXT.value,
        )
    )
    content = f"{recipient.username} accepted your contact request"
    db.add(
        build_notification(
            recipient_id=sender_id,
            sender_id=recipient_id,
            content=content,
            type_=NotificationType.FRIEND_ACCEPTED,
        )
    )

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to accept friend request %s", request_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    db.refresh(request)
    db.refresh(friendship)
    push_notification(sender_id, type_=NotificationType.FRIEND_ACCEPTED, content=content, sender=recipient)
    return friendship


def reject_friend_request(db: Session, *, request_id: UUID, recipient: User) -> FriendRequest:
    request = _load_for_response(db, request_id=request_id, recipient=recipient)
    _claim(db, request_id, REJECTED)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    db.refresh(request)
    return request


def remove_friend(db: Session, *, user: User, friend_id: UUID) -> bool:
    """Delete the friendship edge and the pair's request history."""

    friendship = existing_friendship(db, user.id, friend_id)
    if friendship is None:
        return False
    db.delete(friendship)
    db.execute(delete(FriendRequest).where(_pair_clause(user.id, friend_id)))
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return True


__all__ = [
    "WELCOME_TEXT",
    "accept_friend_request",
    "are_friends",
    "existing_friendship",
    "list_friend_ids",
    "list_friend_requests",
    "list_friends",
    "reject_friend_request",
    "remove_friend",
    "send_friend_request",
]
