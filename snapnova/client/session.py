"""Client-side credential state."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SessionState:
    access_token: str | None = None
    refresh_token: str | None = None
    user: dict[str, Any] | None = field(default=None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None


__all__ = ["SessionState"]
