"""Aggregate router exports."""
from .auth import router as auth_router
from .contacts import router as contacts_router
from .messages import router as messages_router
from .realtime import router as realtime_router
from .snaps import router as snaps_router
from .stories import router as stories_router
from .system import router as system_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "contacts_router",
    "messages_router",
    "realtime_router",
    "snaps_router",
    "stories_router",
    "system_router",
    "users_router",
]
