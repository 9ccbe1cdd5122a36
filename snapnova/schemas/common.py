"""Shared response shapes: the JSON envelope and compact user cards."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Envelope(BaseModel):
    """Every REST response carries ``success`` and an optional ``message``."""

    success: bool = True
    message: str | None = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    avatar_url: str = ""
    bio: str = ""
    is_online: bool = False
    last_seen_at: datetime | None = None


__all__ = ["Envelope", "UserSummary"]
