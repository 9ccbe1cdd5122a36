"""SQLAlchemy ORM model for 24-hour stories."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from snapnova.database import Base
from .associations import story_viewers


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Story(Base):
    __tablename__ = "stories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    media_url = Column(String(2048), nullable=False)
    media_type = Column(Enum("image", "video", name="story_media_type"), nullable=False, default="image")
    caption = Column(String(200), nullable=False, server_default="", default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    author = relationship("User", back_populates="stories")
    viewers = relationship("User", secondary=story_viewers, order_by=story_viewers.c.viewed_at)

    def is_active(self, *, reference: datetime | None = None) -> bool:
        reference = reference or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return reference < expires_at


__all__ = ["Story"]
