"""Pydantic schemas for 24-hour stories."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from .common import Envelope, UserSummary


class StoryCreate(BaseModel):
    media_data: str | None = Field(default=None, description="Inline base64 data URI")
    media_type: Literal["image", "video"] | None = None
    caption: str = Field(default="", max_length=200)


class StoryItem(BaseModel):
    id: UUID
    user_id: UUID
    media_url: str
    media_type: str
    caption: str = ""
    viewers: list[UUID] = Field(default_factory=list)
    created_at: datetime
    expires_at: datetime


class StoryBucket(BaseModel):
    user: UserSummary
    stories: list[StoryItem]


class StoryFeedResponse(Envelope):
    stories_feed: list[StoryBucket]


class StoryEnvelope(Envelope):
    story: StoryItem


class StoryListResponse(Envelope):
    stories: list[StoryItem]


__all__ = [
    "StoryCreate",
    "StoryItem",
    "StoryBucket",
    "StoryFeedResponse",
    "StoryEnvelope",
    "StoryListResponse",
]
