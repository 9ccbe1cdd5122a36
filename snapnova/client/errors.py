"""Errors raised by the Snapnova API client."""
from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """A non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, payload: Any | None = None) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload


class SessionExpiredError(ApiError):
    """The session could not be refreshed and has been cleared."""


__all__ = ["ApiError", "SessionExpiredError"]
