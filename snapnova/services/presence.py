"""In-memory presence relay routing realtime events to per-user rooms.

The relay owns three transient tables: every live connection, the identity a
connection announced (if any), and one room per identity holding that user's
connections. Nothing here is authoritative; the ``users.is_online`` column is
written as a side effect and REST endpoints remain the reconciliation path.

Frames on the wire are JSON objects ``{"event": <name>, "data": <payload>}``.
Delivery is at-most-once: events for users without a live connection are
dropped.
"""
from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import UUID

from fastapi import WebSocket
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User

logger = logging.getLogger(__name__)

EVENT_USER_ONLINE = "userOnline"
EVENT_USER_STATUS = "userStatusChange"
EVENT_SEND_MESSAGE = "sendMessage"
EVENT_RECEIVE_MESSAGE = "receiveMessage"
EVENT_TYPING = "typing"
EVENT_SEEN_MESSAGE = "seenMessage"
EVENT_NOTIFICATION = "notification"
EVENT_PING = "ping"
EVENT_PONG = "pong"


def _normalize_identity(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("user_id")
    if isinstance(value, UUID):
        return str(value)
    if not isinstance(value, str):
        return None
    try:
        return str(UUID(value.strip()))
    except ValueError:
        return None


def _encode(event: str, payload: Any) -> str:
    return json.dumps({"event": event, "data": payload}, default=str)


class PresenceRelay:
    """Tracks connection/identity bindings and fans events out to rooms."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory
        self._bindings: dict[WebSocket, str | None] = {}
        self._rooms: dict[str, set[WebSocket]] = {}

    # Connection lifecycle -------------------------------------------------

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._bindings[websocket] = None
        logger.info("Relay connection opened from %s", websocket.client)

    async def announce_online(self, websocket: WebSocket, identity: Any) -> bool:
        """Bind ``websocket`` to ``identity`` and publish the presence change.

        Malformed identities are logged and ignored; the caller gets no reply.
        """

        user_id = _normalize_identity(identity)
        if user_id is None:
            logger.warning("Ignoring %s with malformed identity %r", EVENT_USER_ONLINE, identity)
            return False
        if websocket not in self._bindings:
            logger.warning("Ignoring %s from an unregistered connection", EVENT_USER_ONLINE)
            return False

        previous = self._bindings.get(websocket)
        if previous is not None and previous != user_id:
            await self._leave_room(websocket, previous)

        self._bindings[websocket] = user_id
        self._rooms.setdefault(user_id, set()).add(websocket)
        logger.info("Relay connection bound to user %s", user_id)

        await self._persist_presence(user_id, online=True)
        await self.broadcast(EVENT_USER_STATUS, {"user_id": user_id, "is_online": True})
        return True

    async def disconnect(self, websocket: WebSocket) -> None:
        if websocket not in self._bindings:
            return
        user_id = self._bindings.pop(websocket)
        if user_id is None:
            logger.info("Relay connection closed before announcing an identity")
            return
        await self._leave_room(websocket, user_id)
        logger.info("Relay connection for user %s closed", user_id)

    async def _leave_room(self, websocket: WebSocket, user_id: str) -> None:
        room = self._rooms.get(user_id)
        if room is not None:
            room.discard(websocket)
            if not room:
                self._rooms.pop(user_id, None)
        await self._persist_presence(user_id, online=False)
        await self.broadcast(EVENT_USER_STATUS, {"user_id": user_id, "is_online": False})

    # Delivery -------------------------------------------------------------

    async def route_to_user(self, user_id: UUID | str, event: str, payload: Any) -> int:
        """Deliver ``payload`` to every connection in the user's room.

        Returns the number of connections reached; zero means the event was
        dropped.
        """

        target = _normalize_identity(user_id)
        if target is None:
            logger.debug("Dropping %s for malformed target %r", event, user_id)
            return 0
        connections = list(self._rooms.get(target, ()))
        if not connections:
            logger.debug("Dropping %s for offline user %s", event, target)
            return 0
        return await self._deliver(connections, _encode(event, payload))

    async def broadcast(self, event: str, payload: Any) -> int:
        return await self._deliver(list(self._bindings), _encode(event, payload))

    async def send_to_connection(self, websocket: WebSocket, event: str, payload: Any) -> bool:
        return await self._deliver([websocket], _encode(event, payload)) == 1

    async def _deliver(self, connections: list[WebSocket], serialized: str) -> int:
        delivered = 0
        for connection in connections:
            try:
                await connection.send_text(serialized)
            except Exception:
                logger.warning("Relay send failed; dropping connection %s", getattr(connection, "client", None))
                await self.disconnect(connection)
                continue
            delivered += 1
        return delivered

    def schedule_to_user(self, user_id: UUID | str, event: str, payload: Any) -> None:
        """Fire-and-forget :meth:`route_to_user` from synchronous service code."""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.create_task(self.route_to_user(user_id, event, payload))

    # Client events --------------------------------------------------------

    async def handle_event(self, websocket: WebSocket, event: Any, data: Any) -> None:
        """Dispatch one client frame. Unknown events are ignored."""

        if event == EVENT_USER_ONLINE:
            await self.announce_online(websocket, data)
        elif event == EVENT_PING:
            await self.send_to_connection(websocket, EVENT_PONG, None)
        elif not isinstance(data, dict):
            logger.debug("Ignoring %r frame without an object payload", event)
        elif event == EVENT_SEND_MESSAGE:
            await self.route_to_user(data.get("receiver_id"), EVENT_RECEIVE_MESSAGE, data)
        elif event == EVENT_TYPING:
            await self.route_to_user(
                data.get("receiver_id"),
                EVENT_TYPING,
                {"sender_id": data.get("sender_id"), "is_typing": bool(data.get("is_typing"))},
            )
        elif event == EVENT_SEEN_MESSAGE:
            await self.route_to_user(data.get("sender_id"), EVENT_SEEN_MESSAGE, {"by": data.get("seen_by")})
        elif event == EVENT_NOTIFICATION:
            await self.route_to_user(data.get("target_user_id"), EVENT_NOTIFICATION, data)
        else:
            logger.debug("Ignoring unknown relay event %r", event)

    # Introspection --------------------------------------------------------

    def identity_of(self, websocket: WebSocket) -> str | None:
        return self._bindings.get(websocket)

    def is_connected(self, user_id: UUID | str) -> bool:
        target = _normalize_identity(user_id)
        return bool(target and self._rooms.get(target))

    @property
    def connection_count(self) -> int:
        return len(self._bindings)

    # Persistence ----------------------------------------------------------

    async def _persist_presence(self, user_id: str, *, online: bool) -> None:
        await asyncio.to_thread(self._write_presence, user_id, online)

    def _write_presence(self, user_id: str, online: bool) -> None:
        values: dict[str, Any] = {"is_online": online}
        if not online:
            values["last_seen_at"] = datetime.now(timezone.utc)

        factory = self._session_factory
        if factory is None:
            from ..database import create_session

            factory = create_session

        session = factory()
        try:
            session.execute(
                update(User)
                .where(User.id == UUID(user_id))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to persist presence for user %s", user_id)
        finally:
            session.close()


relay = PresenceRelay()


__all__ = [
    "EVENT_NOTIFICATION",
    "EVENT_PING",
    "EVENT_PONG",
    "EVENT_RECEIVE_MESSAGE",
    "EVENT_SEEN_MESSAGE",
    "EVENT_SEND_MESSAGE",
    "EVENT_TYPING",
    "EVENT_USER_ONLINE",
    "EVENT_USER_STATUS",
    "PresenceRelay",
    "relay",
]
