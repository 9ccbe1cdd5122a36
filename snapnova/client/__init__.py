"""Async Python client for the Snapnova API with single-flight token refresh."""
from .api import AUTH_ENDPOINTS, SnapnovaClient
from .errors import ApiError, SessionExpiredError
from .refresh import RefreshCoordinator, RefreshState
from .session import SessionState

__all__ = [
    "AUTH_ENDPOINTS",
    "ApiError",
    "RefreshCoordinator",
    "RefreshState",
    "SessionExpiredError",
    "SessionState",
    "SnapnovaClient",
]
