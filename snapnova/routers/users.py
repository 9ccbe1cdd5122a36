"""Profile, directory and notification routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import (
    Envelope,
    NotificationListResponse,
    NotificationResponse,
    ProfileEnvelope,
    ProfileUpdateRequest,
    RemoveFriendRequest,
    UserListResponse,
    UserSummary,
)
from ..services import (
    count_unread_notifications,
    get_current_user,
    get_profile,
    list_notifications,
    mark_all_read,
    remove_friend,
    search_users,
    suggested_users,
    update_profile,
)
from .auth import to_user_profile

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=ProfileEnvelope)
async def my_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileEnvelope:
    return ProfileEnvelope(user=to_user_profile(db, current_user))


@router.get("/profile/{user_id}", response_model=ProfileEnvelope)
async def user_profile(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileEnvelope:
    return ProfileEnvelope(user=to_user_profile(db, get_profile(db, user_id)))


@router.put("/profile", response_model=ProfileEnvelope)
async def update_my_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileEnvelope:
    updated = await update_profile(db, user=current_user, payload=payload)
    return ProfileEnvelope(message="Profile updated", user=to_user_profile(db, updated))


@router.get("/search", response_model=UserListResponse)
async def search_directory(
    q: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> UserListResponse:
    users = search_users(db, user=current_user, query=q)
    return UserListResponse(users=[UserSummary.model_validate(user) for user in users])


@router.get("/suggested", response_model=UserListResponse)
async def suggested(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> UserListResponse:
    users = suggested_users(db, user=current_user)
    return UserListResponse(users=[UserSummary.model_validate(user) for user in users])


@router.post("/remove-friend", response_model=Envelope)
async def remove_friend_endpoint(
    payload: RemoveFriendRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    removed = remove_friend(db, user=current_user, friend_id=payload.user_id)
    return Envelope(message="Friend removed" if removed else "Not friends")


@router.get("/notifications", response_model=NotificationListResponse)
async def notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationListResponse:
    items = list_notifications(db, current_user.id)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(item) for item in items],
        unread_count=count_unread_notifications(db, current_user.id),
    )


@router.put("/notifications/read", response_model=Envelope)
async def read_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    updated = mark_all_read(db, current_user.id)
    return Envelope(message=f"{updated} notifications marked as read")


__all__ = ["router"]
