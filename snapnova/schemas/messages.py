"""Schemas used by messaging and snap endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import Envelope, UserSummary

MediaKind = Literal["image", "video"]


class MessageSendRequest(BaseModel):
    receiver_id: UUID
    text: str | None = Field(default=None, max_length=2000)
    media_data: str | None = Field(default=None, description="Inline base64 data URI")
    media_type: MediaKind | None = None
    is_snap: bool = False
    snap_duration: int = Field(default=5, ge=1, le=60)


class SnapUploadRequest(BaseModel):
    receiver_id: UUID
    media_data: str | None = Field(default=None, description="Inline base64 data URI")
    media_type: MediaKind | None = None
    snap_duration: int = Field(default=5, ge=1, le=60)


class MarkSeenRequest(BaseModel):
    sender_id: UUID


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender_id: UUID
    receiver_id: UUID
    text: str = ""
    media_url: str = ""
    media_type: str
    is_seen: bool
    is_snap: bool
    snap_duration: int
    expires_at: datetime | None = None
    created_at: datetime


class MessageCreatedResponse(Envelope):
    chat_message: MessageResponse


class MessageThreadResponse(Envelope):
    messages: list[MessageResponse]


class ConversationSummary(BaseModel):
    user: UserSummary
    last_message: MessageResponse


class ConversationListResponse(Envelope):
    conversations: list[ConversationSummary]


class SnapResponse(Envelope):
    snap: MessageResponse


__all__ = [
    "MediaKind",
    "MessageSendRequest",
    "SnapUploadRequest",
    "MarkSeenRequest",
    "MessageResponse",
    "MessageCreatedResponse",
    "MessageThreadResponse",
    "ConversationSummary",
    "ConversationListResponse",
    "SnapResponse",
]
