"""Pydantic schemas for authentication endpoints."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .common import Envelope, UserSummary


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username", mode="before")
    def strip_username(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    avatar_url: str = ""
    bio: str = ""
    is_online: bool = False
    last_seen_at: datetime | None = None
    created_at: datetime | None = None
    friends: list[UserSummary] = Field(default_factory=list)


class AuthResponse(Envelope):
    user: UserProfile
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenPairResponse(Envelope):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class ProfileEnvelope(Envelope):
    user: UserProfile


__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "UserProfile",
    "AuthResponse",
    "TokenPairResponse",
    "ProfileEnvelope",
]
