"""Tests for the expiry sweep."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from snapnova.database import SessionLocal
from snapnova.models import Message, Story, User
from snapnova.services.cleanup_service import CleanupSummary, perform_cleanup, run_cleanup


def _seed() -> tuple[User, User]:
    with SessionLocal() as session:
        sender = User(username="sweep-sender", email="sweep-sender@snapnova.io", hashed_password="x")
        receiver = User(username="sweep-receiver", email="sweep-receiver@snapnova.io", hashed_password="x")
        session.add_all([sender, receiver])
        session.commit()
        session.refresh(sender)
        session.refresh(receiver)
        return sender, receiver


def test_sweep_removes_only_expired_records():
    sender, receiver = _seed()
    now = datetime.now(timezone.utc)
    with SessionLocal() as session:
        session.add_all(
            [
                Message(sender_id=sender.id, receiver_id=receiver.id, text="plain"),
                Message(sender_id=sender.id, receiver_id=receiver.id, is_snap=True, media_url="u", media_type="image"),
                Message(
                    sender_id=sender.id,
                    receiver_id=receiver.id,
                    is_snap=True,
                    media_url="u",
                    media_type="image",
                    expires_at=now - timedelta(seconds=1),
                ),
                Message(
                    sender_id=sender.id,
                    receiver_id=receiver.id,
                    is_snap=True,
                    media_url="u",
                    media_type="image",
                    expires_at=now + timedelta(seconds=30),
                ),
                Story(user_id=sender.id, media_url="s", expires_at=now - timedelta(minutes=1)),
                Story(user_id=sender.id, media_url="s", expires_at=now + timedelta(hours=1)),
            ]
        )
        session.commit()

    with SessionLocal() as session:
        summary = perform_cleanup(session, now=now)

    assert summary == CleanupSummary(messages=1, stories=1)
    assert summary.total == 2
    with SessionLocal() as session:
        assert session.scalar(select(func.count()).select_from(Message)) == 3
        assert session.scalar(select(func.count()).select_from(Story)) == 1


def test_run_cleanup_with_nothing_expired():
    assert run_cleanup(SessionLocal).total == 0
