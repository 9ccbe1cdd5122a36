"""WebSocket endpoint carrying the presence relay."""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services.presence import relay

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket) -> None:
    """Pump ``{"event", "data"}`` frames from one client into the relay."""

    await relay.connect(websocket)
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break
            except Exception:
                logger.exception("Relay socket receive failed")
                break

            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON relay frame")
                continue
            if not isinstance(frame, dict):
                continue

            await relay.handle_event(websocket, frame.get("event"), frame.get("data"))
    finally:
        await relay.disconnect(websocket)


__all__ = ["router"]
