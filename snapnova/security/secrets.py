"""Signing keys and media credentials read from the environment."""
from __future__ import annotations

import os
from typing import Final

__all__ = ["MissingSecretError", "is_placeholder", "require_distinct_secrets", "require_secret"]


class MissingSecretError(RuntimeError):
    """Raised when a secret is absent, a placeholder, or shared with another key."""


# Values shipped in .env.example and common sample configs.
_PLACEHOLDER_VALUES: Final[frozenset[str]] = frozenset(
    {
        "changeme",
        "change-me",
        "change-me-too",
        "placeholder",
        "secret",
        "your-key-here",
        "your_jwt_secret",
    }
)


def is_placeholder(value: str | None) -> bool:
    normalized = (value or "").strip().lower()
    return normalized in _PLACEHOLDER_VALUES or not normalized


def require_secret(name: str) -> str:
    """Return the trimmed value of ``name`` or raise :class:`MissingSecretError`."""

    value = os.getenv(name)
    if is_placeholder(value):
        raise MissingSecretError(f"{name} must be set to a real secret")
    return value.strip()


def require_distinct_secrets(*names: str) -> dict[str, str]:
    """Load several secrets and reject any two that share a value."""

    values = {name: require_secret(name) for name in names}
    seen: dict[str, str] = {}
    for name, value in values.items():
        if value in seen:
            raise MissingSecretError(f"{name} must differ from {seen[value]}")
        seen[value] = name
    return values
