"""API routes for 24-hour stories."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Story, User
from ..schemas import (
    Envelope,
    StoryBucket,
    StoryCreate,
    StoryEnvelope,
    StoryFeedResponse,
    StoryItem,
    StoryListResponse,
    UserSummary,
)
from ..services import create_story, delete_story, get_current_user, list_my_stories, list_story_feed, view_story

router = APIRouter(prefix="/stories", tags=["stories"])


def _serialize_story(story: Story) -> StoryItem:
    return StoryItem(
        id=story.id,
        user_id=story.user_id,
        media_url=story.media_url,
        media_type=story.media_type,
        caption=story.caption or "",
        viewers=[viewer.id for viewer in story.viewers],
        created_at=story.created_at,
        expires_at=story.expires_at,
    )


@router.post("", response_model=StoryEnvelope, status_code=status.HTTP_201_CREATED)
async def create_story_endpoint(
    payload: StoryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StoryEnvelope:
    story = await create_story(db, author=current_user, payload=payload)
    return StoryEnvelope(story=_serialize_story(story))


@router.get("/feed", response_model=StoryFeedResponse)
async def story_feed(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StoryFeedResponse:
    buckets = [
        StoryBucket(
            user=UserSummary.model_validate(entry["user"]),
            stories=[_serialize_story(story) for story in entry["stories"]],
        )
        for entry in list_story_feed(db, viewer=current_user)
    ]
    return StoryFeedResponse(stories_feed=buckets)


@router.get("/mine", response_model=StoryListResponse)
async def my_stories(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StoryListResponse:
    return StoryListResponse(stories=[_serialize_story(story) for story in list_my_stories(db, owner=current_user)])


@router.put("/{story_id}/view", response_model=StoryEnvelope)
async def view_story_endpoint(
    story_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StoryEnvelope:
    story = view_story(db, viewer=current_user, story_id=story_id)
    return StoryEnvelope(story=_serialize_story(story))


@router.delete("/{story_id}", response_model=Envelope)
async def delete_story_endpoint(
    story_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    delete_story(db, owner=current_user, story_id=story_id)
    return Envelope(message="Story deleted")


__all__ = ["router"]
