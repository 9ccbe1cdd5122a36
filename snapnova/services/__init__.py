"""Convenience exports for service layer."""
from .auth_service import (
    TokenPair,
    get_current_user,
    login_user,
    logout_user,
    refresh_session,
    register_user,
)
from .cleanup_service import CleanupError, CleanupSummary, perform_cleanup, run_cleanup
from .friendship_service import (
    accept_friend_request,
    are_friends,
    list_friend_requests,
    list_friends,
    reject_friend_request,
    remove_friend,
    send_friend_request,
)
from .message_service import delete_message, list_conversation, list_conversations, mark_seen, send_message
from .notification_service import (
    NotificationType,
    count_unread_notifications,
    list_notifications,
    mark_all_read,
)
from .presence import PresenceRelay, relay
from .snap_service import delete_snap, open_snap, upload_snap
from .story_service import create_story, delete_story, list_my_stories, list_story_feed, view_story
from .user_service import get_profile, search_users, suggested_users, update_profile

__all__ = [
    "TokenPair",
    "get_current_user",
    "login_user",
    "logout_user",
    "refresh_session",
    "register_user",
    "CleanupError",
    "CleanupSummary",
    "perform_cleanup",
    "run_cleanup",
    "accept_friend_request",
    "are_friends",
    "list_friend_requests",
    "list_friends",
    "reject_friend_request",
    "remove_friend",
    "send_friend_request",
    "delete_message",
    "list_conversation",
    "list_conversations",
    "mark_seen",
    "send_message",
    "NotificationType",
    "count_unread_notifications",
    "list_notifications",
    "mark_all_read",
    "PresenceRelay",
    "relay",
    "delete_snap",
    "open_snap",
    "upload_snap",
    "create_story",
    "delete_story",
    "list_my_stories",
    "list_story_feed",
    "view_story",
    "get_profile",
    "search_users",
    "suggested_users",
    "update_profile",
]
