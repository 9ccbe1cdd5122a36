"""SQLAlchemy ORM model for application users."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from snapnova.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    bio = Column(String(150), nullable=False, server_default="", default="")
    avatar_url = Column(String(1024), nullable=False, server_default="", default="")
    is_online = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    last_seen_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # Single active refresh token; overwritten on login/refresh, cleared on logout.
    refresh_token = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    sent_messages = relationship(
        "Message",
        foreign_keys="Message.sender_id",
        back_populates="sender",
        cascade="all, delete-orphan",
    )
    received_messages = relationship(
        "Message",
        foreign_keys="Message.receiver_id",
        back_populates="receiver",
        cascade="all, delete-orphan",
    )
    stories = relationship("Story", back_populates="author", cascade="all, delete-orphan")
    notifications_received = relationship(
        "Notification",
        foreign_keys="Notification.recipient_id",
        back_populates="recipient",
        cascade="all, delete-orphan",
    )
    notifications_sent = relationship(
        "Notification",
        foreign_keys="Notification.sender_id",
        back_populates="sender",
        cascade="all, delete-orphan",
    )
    friendships_a = relationship(
        "Friendship",
        foreign_keys="Friendship.user_a_id",
        back_populates="user_a",
        cascade="all, delete-orphan",
    )
    friendships_b = relationship(
        "Friendship",
        foreign_keys="Friendship.user_b_id",
        back_populates="user_b",
        cascade="all, delete-orphan",
    )
    friend_requests_sent = relationship(
        "FriendRequest",
        foreign_keys="FriendRequest.sender_id",
        back_populates="sender",
        cascade="all, delete-orphan",
    )
    friend_requests_received = relationship(
        "FriendRequest",
        foreign_keys="FriendRequest.recipient_id",
        back_populates="recipient",
        cascade="all, delete-orphan",
    )


__all__ = ["User"]
