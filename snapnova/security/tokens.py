"""Signed access and refresh tokens bound to a user identity."""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from uuid import UUID

from jose import JWTError, jwt

from ..config import get_settings
from .secrets import MissingSecretError, require_distinct_secrets, require_secret

ACCESS_SECRET_ENV = "JWT_SECRET_KEY"
REFRESH_SECRET_ENV = "JWT_REFRESH_SECRET_KEY"


class TokenError(ValueError):
    """Raised when a token cannot be decoded or carries an unusable subject."""


@lru_cache(maxsize=None)
def _signing_key(name: str) -> str:
    try:
        return require_secret(name)
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def ensure_signing_keys() -> None:
    """Fail fast when a signing key is absent or both keys are the same.

    Called once during application startup so a misconfigured deployment never
    starts serving requests.
    """

    try:
        require_distinct_secrets(ACCESS_SECRET_ENV, REFRESH_SECRET_ENV)
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def _encode(subject: UUID, key_name: str, lifetime: timedelta, **extra: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": str(subject), "iat": now, "exp": now + lifetime, **extra}
    return jwt.encode(payload, _signing_key(key_name), algorithm=get_settings().jwt_algorithm)


def _decode(token: str, key_name: str, *, verify_exp: bool = True) -> UUID:
    try:
        payload = jwt.decode(
            token,
            _signing_key(key_name),
            algorithms=[get_settings().jwt_algorithm],
            options={"verify_exp": verify_exp},
        )
    except JWTError as exc:
        raise TokenError("Invalid token") from exc

    subject = payload.get("sub")
    if not subject:
        raise TokenError("Invalid token payload")
    try:
        return UUID(subject)
    except ValueError as exc:
        raise TokenError("Invalid token payload") from exc


def issue_access_token(subject: UUID, *, expires_minutes: int | None = None) -> str:
    """Create a short-lived access token for ``subject``."""

    minutes = expires_minutes if expires_minutes is not None else get_settings().access_token_minutes
    return _encode(subject, ACCESS_SECRET_ENV, timedelta(minutes=minutes))


def issue_refresh_token(subject: UUID, *, expires_days: int | None = None) -> str:
    """Create a long-lived refresh token for ``subject``.

    Every token carries a random ``jti`` so that two tokens minted in the same
    second never compare equal.
    """

    days = expires_days if expires_days is not None else get_settings().refresh_token_days
    return _encode(subject, REFRESH_SECRET_ENV, timedelta(days=days), jti=secrets.token_hex(16))


def decode_access_token(token: str, *, verify_exp: bool = True) -> UUID:
    """Return the subject of an access token or raise :class:`TokenError`."""

    return _decode(token, ACCESS_SECRET_ENV, verify_exp=verify_exp)


def decode_refresh_token(token: str) -> UUID:
    """Return the subject of a refresh token or raise :class:`TokenError`."""

    return _decode(token, REFRESH_SECRET_ENV)


__all__ = [
    "TokenError",
    "ensure_signing_keys",
    "issue_access_token",
    "issue_refresh_token",
    "decode_access_token",
    "decode_refresh_token",
]
