"""Association tables shared across ORM models."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Table
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from snapnova.database import Base


story_viewers = Table(
    "story_viewers",
    Base.metadata,
    Column("story_id", UUID(as_uuid=True), ForeignKey("stories.id", ondelete="CASCADE"), primary_key=True),
    Column("viewer_id", UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("viewed_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


__all__ = ["story_viewers"]
