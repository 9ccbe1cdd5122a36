"""Snap routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import Envelope, MessageResponse, SnapResponse, SnapUploadRequest
from ..services import delete_snap, get_current_user, open_snap, upload_snap

router = APIRouter(prefix="/snaps", tags=["snaps"])


@router.post("/upload", response_model=SnapResponse, status_code=status.HTTP_201_CREATED)
async def upload(
    payload: SnapUploadRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> SnapResponse:
    snap = await upload_snap(db, sender=current_user, payload=payload)
    return SnapResponse(snap=MessageResponse.model_validate(snap))


@router.get("/{snap_id}", response_model=SnapResponse)
async def view(
    snap_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> SnapResponse:
    snap = open_snap(db, viewer=current_user, snap_id=snap_id)
    return SnapResponse(snap=MessageResponse.model_validate(snap))


@router.delete("/{snap_id}", response_model=Envelope)
async def remove(
    snap_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Envelope:
    delete_snap(db, user=current_user, snap_id=snap_id)
    return Envelope(message="Snap deleted")


__all__ = ["router"]
