"""Schemas for friend requests."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from .common import Envelope, UserSummary


class ContactRequestPayload(BaseModel):
    user_id: UUID


class ContactDecisionPayload(BaseModel):
    request_id: UUID


class ContactRequestItem(BaseModel):
    id: UUID
    user: UserSummary
    status: str
    created_at: datetime


class ContactRequestsResponse(Envelope):
    incoming: list[ContactRequestItem]
    sent: list[ContactRequestItem]


__all__ = [
    "ContactRequestPayload",
    "ContactDecisionPayload",
    "ContactRequestItem",
    "ContactRequestsResponse",
]
