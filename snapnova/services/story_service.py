"""Business logic for 24-hour stories."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..models import Story, User
from ..schemas import StoryCreate
from .friendship_service import are_friends, list_friend_ids
from .media_service import upload_inline_media

STORY_LIFETIME = timedelta(hours=24)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def create_story(db: Session, *, author: User, payload: StoryCreate) -> Story:
    if not payload.media_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Media is required")

    media_url, detected = await upload_inline_media(payload.media_data, folder="stories")
    story = Story(
        user_id=author.id,
        media_url=media_url,
        media_type=payload.media_type or detected,
        caption=payload.caption.strip(),
        expires_at=_now() + STORY_LIFETIME,
    )
    db.add(story)
    db.commit()
    db.refresh(story)
    return story


def list_story_feed(db: Session, *, viewer: User) -> list[dict[str, Any]]:
    """Return active stories of the viewer and their friends grouped by author.

    Buckets are ordered by their newest story; stories inside a bucket are
    newest first.
    """

    author_ids = [viewer.id, *list_friend_ids(db, viewer.id)]
    stmt = (
        select(Story)
        .options(selectinload(Story.author), selectinload(Story.viewers))
        .where(Story.user_id.in_(author_ids), Story.expires_at > _now())
        .order_by(Story.created_at.desc())
    )

    grouped: dict[UUID, dict[str, Any]] = {}
    for story in db.scalars(stmt):
        bucket = grouped.get(story.user_id)
        if bucket is None:
            bucket = {"user": story.author, "stories": []}
            grouped[story.user_id] = bucket
        bucket["stories"].append(story)
    return list(grouped.values())


def list_my_stories(db: Session, *, owner: User) -> list[Story]:
    stmt = (
        select(Story)
        .options(selectinload(Story.viewers))
        .where(Story.user_id == owner.id, Story.expires_at > _now())
        .order_by(Story.created_at.desc())
    )
    return list(db.scalars(stmt))


def view_story(db: Session, *, viewer: User, story_id: UUID) -> Story:
    """Record ``viewer`` on the story's viewer set once and return the story."""

    story = db.get(Story, story_id)
    if story is None or not story.is_active(reference=_now()):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found")
    if story.user_id == viewer.id:
        return story
    if not are_friends(db, viewer.id, story.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to view this story")

    if viewer not in story.viewers:
        story.viewers.append(viewer)
        db.commit()
        db.refresh(story)
    return story


def delete_story(db: Session, *, owner: User, story_id: UUID) -> None:
    story = db.scalar(select(Story).where(Story.id == story_id, Story.user_id == owner.id))
    if story is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found")
    db.delete(story)
    db.commit()


__all__ = [
    "STORY_LIFETIME",
    "create_story",
    "delete_story",
    "list_my_stories",
    "list_story_feed",
    "view_story",
]
