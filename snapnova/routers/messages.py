"""Direct message routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import (
    ConversationListResponse,
    ConversationSummary,
    Envelope,
    MarkSeenRequest,
    MessageCreatedResponse,
    MessageResponse,
    MessageSendRequest,
    MessageThreadResponse,
    UserSummary,
)
from ..services import (
    delete_message,
    get_current_user,
    list_conversation,
    list_conversations,
    mark_seen,
    send_message,
)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/conversations", response_model=ConversationListResponse)
async def conversations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ConversationListResponse:
    items = [
        ConversationSummary(
            user=UserSummary.model_validate(partner),
            last_message=MessageResponse.model_validate(message),
        )
        for partner, message in list_conversations(db, user_id=current_user.id)
    ]
    return ConversationListResponse(conversations=items)


@router.post("", response_model=MessageCreatedResponse, status_code=status.HTTP_201_CREATED)
async def send(
    payload: MessageSendRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageCreatedResponse:
    message = await send_message(db, sender=current_user, payload=payload)
    return MessageCreatedResponse(chat_message=MessageResponse.model_validate(message))


@router.put("/seen", response_model=Envelope)
async def seen(
    payload: MarkSeenRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    await mark_seen(db, reader=current_user, sender_id=payload.sender_id)
    return Envelope()


@router.get("/{user_id}", response_model=MessageThreadResponse)
async def thread(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageThreadResponse:
    messages = list_conversation(db, user_id=current_user.id, other_id=user_id)
    return MessageThreadResponse(messages=[MessageResponse.model_validate(message) for message in messages])


@router.delete("/{message_id}", response_model=Envelope)
async def remove(
    message_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    delete_message(db, user=current_user, message_id=message_id)
    return Envelope(message="Message deleted")


__all__ = ["router"]
