"""Convenience exports for ORM models."""
from .associations import story_viewers
from .friend_request import FriendRequest, FriendRequestStatus
from .friendship import Friendship
from .message import MediaType, Message
from .notification import Notification
from .story import Story
from .user import User

__all__ = [
    "story_viewers",
    "FriendRequest",
    "FriendRequestStatus",
    "Friendship",
    "MediaType",
    "Message",
    "Notification",
    "Story",
    "User",
]
