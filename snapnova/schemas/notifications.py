"""Schemas for notifications."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .common import Envelope, UserSummary


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recipient_id: UUID
    sender_id: UUID
    sender: UserSummary | None = None
    type: str
    content: str
    read: bool
    created_at: datetime


class NotificationListResponse(Envelope):
    notifications: list[NotificationResponse]
    unread_count: int = 0


__all__ = ["NotificationResponse", "NotificationListResponse"]
