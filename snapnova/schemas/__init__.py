"""Convenience exports for schema layer."""
from .auth import (
    AuthResponse,
    LoginRequest,
    ProfileEnvelope,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
    UserProfile,
)
from .common import Envelope, UserSummary
from .contacts import ContactDecisionPayload, ContactRequestItem, ContactRequestPayload, ContactRequestsResponse
from .messages import (
    ConversationListResponse,
    ConversationSummary,
    MarkSeenRequest,
    MessageCreatedResponse,
    MessageResponse,
    MessageSendRequest,
    MessageThreadResponse,
    SnapResponse,
    SnapUploadRequest,
)
from .notifications import NotificationListResponse, NotificationResponse
from .stories import StoryBucket, StoryCreate, StoryEnvelope, StoryFeedResponse, StoryItem, StoryListResponse
from .users import ProfileUpdateRequest, RemoveFriendRequest, UserListResponse

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "ProfileEnvelope",
    "RefreshRequest",
    "RegisterRequest",
    "TokenPairResponse",
    "UserProfile",
    "Envelope",
    "UserSummary",
    "ContactDecisionPayload",
    "ContactRequestItem",
    "ContactRequestPayload",
    "ContactRequestsResponse",
    "ConversationListResponse",
    "ConversationSummary",
    "MarkSeenRequest",
    "MessageCreatedResponse",
    "MessageResponse",
    "MessageSendRequest",
    "MessageThreadResponse",
    "SnapResponse",
    "SnapUploadRequest",
    "NotificationListResponse",
    "NotificationResponse",
    "StoryBucket",
    "StoryCreate",
    "StoryEnvelope",
    "StoryFeedResponse",
    "StoryItem",
    "StoryListResponse",
    "ProfileUpdateRequest",
    "RemoveFriendRequest",
    "UserListResponse",
]
