"""Friend request routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import FriendRequest, User
from ..schemas import (
    ContactDecisionPayload,
    ContactRequestItem,
    ContactRequestPayload,
    ContactRequestsResponse,
    Envelope,
    UserSummary,
)
from ..services import (
    accept_friend_request,
    get_current_user,
    list_friend_requests,
    reject_friend_request,
    send_friend_request,
)

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _serialize_request(request: FriendRequest, counterpart: User) -> ContactRequestItem:
    return ContactRequestItem(
        id=request.id,
        user=UserSummary.model_validate(counterpart),
        status=request.status,
        created_at=request.created_at,
    )


@router.post("/request", response_model=Envelope)
async def send_request(
    payload: ContactRequestPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    send_friend_request(db, sender=current_user, recipient_id=payload.user_id)
    return Envelope(message="Contact request sent")


@router.get("/requests", response_model=ContactRequestsResponse)
async def pending_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ContactRequestsResponse:
    incoming, sent = list_friend_requests(db, user=current_user)
    return ContactRequestsResponse(
        incoming=[_serialize_request(request, request.sender) for request in incoming],
        sent=[_serialize_request(request, request.recipient) for request in sent],
    )


@router.post("/accept", response_model=Envelope)
async def accept_request(
    payload: ContactDecisionPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    accept_friend_request(db, request_id=payload.request_id, recipient=current_user)
    return Envelope(message="Contact request accepted")


@router.post("/reject", response_model=Envelope)
async def reject_request(
    payload: ContactDecisionPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    reject_friend_request(db, request_id=payload.request_id, recipient=current_user)
    return Envelope(message="Contact request rejected")


__all__ = ["router"]
