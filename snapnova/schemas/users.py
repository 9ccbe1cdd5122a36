"""Schemas for profile and directory endpoints."""
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from .common import Envelope, UserSummary


class ProfileUpdateRequest(BaseModel):
    bio: str | None = Field(default=None, max_length=150)
    avatar: str | None = Field(default=None, description="Data URI of the new avatar image")


class UserListResponse(Envelope):
    users: list[UserSummary]


class RemoveFriendRequest(BaseModel):
    user_id: UUID


__all__ = ["ProfileUpdateRequest", "UserListResponse", "RemoveFriendRequest"]
