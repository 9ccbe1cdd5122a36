"""SQLAlchemy ORM model for chat messages and snaps."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from snapnova.database import Base


class MediaType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    TEXT = "text"


DEFAULT_SNAP_SECONDS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    __tablename__ = "messages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False, server_default="", default="")
    media_url = Column(String(2048), nullable=False, server_default="", default="")
    media_type = Column(
        Enum("image", "video", "text", name="message_media_type"),
        nullable=False,
        default=MediaType.TEXT.value,
    )
    is_seen = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    is_snap = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    snap_duration = Column(Integer, nullable=False, server_default=str(DEFAULT_SNAP_SECONDS), default=DEFAULT_SNAP_SECONDS)
    # Null until the receiver first opens a snap; swept once in the past.
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True)

    sender = relationship("User", foreign_keys=[sender_id], back_populates="sent_messages")
    receiver = relationship("User", foreign_keys=[receiver_id], back_populates="received_messages")

    def is_expired(self, *, reference: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        reference = reference or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= reference


__all__ = ["DEFAULT_SNAP_SECONDS", "MediaType", "Message"]
