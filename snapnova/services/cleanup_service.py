"""Expiry sweep deleting snaps and stories whose ``expires_at`` has passed."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Message, Story

logger = logging.getLogger(__name__)


class CleanupError(RuntimeError):
    """Raised when the expiry sweep cannot complete successfully."""


@dataclass(frozen=True, slots=True)
class CleanupSummary:
    """Represents the number of records deleted during a sweep."""

    messages: int
    stories: int

    @property
    def total(self) -> int:
        return self.messages + self.stories


def perform_cleanup(session: Session, *, now: datetime | None = None) -> CleanupSummary:
    """Delete expired messages and stories using the provided session.

    Parameters
    ----------
    session:
        An active SQLAlchemy :class:`Session` bound to the application's database.
    now:
        Reference instant; records with ``expires_at`` at or before it are
        removed. Defaults to the current UTC time.

    Raises
    ------
    CleanupError
        If the sweep fails; the transaction is rolled back first.
    """

    cutoff = now or datetime.now(timezone.utc)

    delete_messages = delete(Message).where(
        Message.expires_at.is_not(None),
        Message.expires_at <= cutoff,
    ).returning(Message.id)
    delete_stories = delete(Story).where(Story.expires_at <= cutoff).returning(Story.id)

    try:
        messages_deleted = _execute_delete(session, delete_messages)
        stories_deleted = _execute_delete(session, delete_stories)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Expiry sweep failed; transaction rolled back")
        raise CleanupError("expiry sweep failed") from exc

    summary = CleanupSummary(messages=messages_deleted, stories=stories_deleted)
    if summary.total:
        logger.info(
            "Expiry sweep finished (messages=%d, stories=%d, total=%d)",
            summary.messages,
            summary.stories,
            summary.total,
        )
    return summary


def run_cleanup(session_factory: Callable[[], Session], *, now: datetime | None = None) -> CleanupSummary:
    """Run :func:`perform_cleanup` on a session scoped to the sweep."""

    session = session_factory()
    try:
        return perform_cleanup(session, now=now)
    finally:
        session.close()


def _execute_delete(session: Session, statement) -> int:
    """Execute a DELETE statement and return the number of affected rows."""

    result = session.execute(statement)
    return len(result.scalars().all())


__all__ = ["CleanupError", "CleanupSummary", "perform_cleanup", "run_cleanup"]
