"""Tests for the in-memory presence relay."""
from __future__ import annotations

import asyncio
import json
from uuid import UUID, uuid4

from snapnova.database import SessionLocal
from snapnova.models import User
from snapnova.services.presence import PresenceRelay


class FakeSocket:
    """Minimal stand-in for a Starlette WebSocket."""

    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.sent: list[dict] = []
        self.broken = broken
        self.client = ("testclient", 0)

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, text: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.sent]


def _persist_user(username: str) -> User:
    with SessionLocal() as session:
        user = User(username=username, email=f"{username}@snapnova.io", hashed_password="not-a-real-hash")
        session.add(user)
        session.commit()
        session.refresh(user)
        return user


def _is_online(user_id: UUID) -> bool:
    with SessionLocal() as session:
        return session.get(User, user_id).is_online


def test_announce_binds_room_persists_and_broadcasts():
    relay = PresenceRelay(session_factory=SessionLocal)
    user = _persist_user("relay-one")
    observer, connection = FakeSocket(), FakeSocket()

    async def scenario() -> None:
        await relay.connect(observer)
        await relay.connect(connection)
        assert relay.identity_of(connection) is None
        assert await relay.announce_online(connection, str(user.id)) is True

    asyncio.run(scenario())

    assert connection.accepted
    assert relay.identity_of(connection) == str(user.id)
    assert relay.is_connected(user.id)
    assert _is_online(user.id) is True
    expected = {"event": "userStatusChange", "data": {"user_id": str(user.id), "is_online": True}}
    assert observer.sent == [expected]
    assert connection.sent == [expected]


def test_malformed_identity_is_ignored():
    relay = PresenceRelay(session_factory=SessionLocal)
    connection = FakeSocket()

    async def scenario() -> bool:
        await relay.connect(connection)
        return await relay.announce_online(connection, "not-a-uuid")

    assert asyncio.run(scenario()) is False
    assert relay.identity_of(connection) is None
    assert connection.sent == []


def test_route_to_user_reaches_every_connection_or_drops():
    relay = PresenceRelay(session_factory=SessionLocal)
    user = _persist_user("relay-two")
    phone, laptop = FakeSocket(), FakeSocket()

    async def scenario() -> tuple[int, int]:
        for socket in (phone, laptop):
            await relay.connect(socket)
            await relay.announce_online(socket, {"user_id": str(user.id)})
        delivered = await relay.route_to_user(user.id, "receiveMessage", {"text": "hi"})
        dropped = await relay.route_to_user(uuid4(), "receiveMessage", {"text": "nobody home"})
        return delivered, dropped

    assert asyncio.run(scenario()) == (2, 0)
    assert phone.events()[-1] == "receiveMessage"
    assert laptop.events()[-1] == "receiveMessage"


def test_every_bound_disconnect_marks_user_offline():
    relay = PresenceRelay(session_factory=SessionLocal)
    user = _persist_user("relay-three")
    phone, laptop, observer = FakeSocket(), FakeSocket(), FakeSocket()
    offline = {"event": "userStatusChange", "data": {"user_id": str(user.id), "is_online": False}}

    async def scenario() -> None:
        await relay.connect(observer)
        for socket in (phone, laptop):
            await relay.connect(socket)
            await relay.announce_online(socket, str(user.id))
        await relay.disconnect(phone)
        assert relay.is_connected(user.id)
        assert _is_online(user.id) is False
        assert observer.sent[-1] == offline
        await relay.disconnect(laptop)

    asyncio.run(scenario())

    assert not relay.is_connected(user.id)
    assert _is_online(user.id) is False
    assert observer.sent.count(offline) == 2
    assert relay.connection_count == 1


def test_disconnect_without_identity_is_a_noop():
    relay = PresenceRelay(session_factory=SessionLocal)
    observer, anonymous = FakeSocket(), FakeSocket()

    async def scenario() -> None:
        await relay.connect(observer)
        await relay.connect(anonymous)
        await relay.disconnect(anonymous)

    asyncio.run(scenario())
    assert observer.sent == []
    assert relay.connection_count == 1


def test_failed_send_drops_the_connection():
    relay = PresenceRelay(session_factory=SessionLocal)
    user = _persist_user("relay-four")
    healthy, dead = FakeSocket(), FakeSocket()

    async def scenario() -> int:
        await relay.connect(healthy)
        await relay.announce_online(healthy, str(user.id))
        await relay.connect(dead)
        dead.broken = True
        return await relay.broadcast("ping", None)

    assert asyncio.run(scenario()) == 1
    assert relay.connection_count == 1


def test_client_events_are_routed():
    relay = PresenceRelay(session_factory=SessionLocal)
    sender = _persist_user("relay-sender")
    receiver = _persist_user("relay-receiver")
    sender_socket, receiver_socket = FakeSocket(), FakeSocket()

    async def scenario() -> None:
        await relay.connect(sender_socket)
        await relay.connect(receiver_socket)
        await relay.announce_online(sender_socket, str(sender.id))
        await relay.announce_online(receiver_socket, str(receiver.id))
        sender_socket.sent.clear()
        receiver_socket.sent.clear()

        await relay.handle_event(
            sender_socket,
            "typing",
            {"sender_id": str(sender.id), "receiver_id": str(receiver.id), "is_typing": True},
        )
        await relay.handle_event(
            sender_socket,
            "sendMessage",
            {"receiver_id": str(receiver.id), "text": "yo"},
        )
        await relay.handle_event(
            receiver_socket,
            "seenMessage",
            {"sender_id": str(sender.id), "seen_by": str(receiver.id)},
        )
        await relay.handle_event(sender_socket, "ping", None)
        await relay.handle_event(sender_socket, "mystery", {"x": 1})

    asyncio.run(scenario())

    assert receiver_socket.sent == [
        {"event": "typing", "data": {"sender_id": str(sender.id), "is_typing": True}},
        {"event": "receiveMessage", "data": {"receiver_id": str(receiver.id), "text": "yo"}},
    ]
    assert sender_socket.sent == [
        {"event": "seenMessage", "data": {"by": str(receiver.id)}},
        {"event": "pong", "data": None},
    ]


def test_websocket_endpoint_relays_between_clients(client, register):
    alice = register("alice")
    bob = register("bob")

    with client.websocket_connect("/api/ws") as alice_ws, client.websocket_connect("/api/ws") as bob_ws:
        bob_ws.send_json({"event": "userOnline", "data": bob["id"]})
        assert bob_ws.receive_json()["data"] == {"user_id": bob["id"], "is_online": True}
        assert alice_ws.receive_json()["data"] == {"user_id": bob["id"], "is_online": True}

        alice_ws.send_json({"event": "sendMessage", "data": {"receiver_id": bob["id"], "text": "over the wire"}})
        frame = bob_ws.receive_json()
        assert frame == {"event": "receiveMessage", "data": {"receiver_id": bob["id"], "text": "over the wire"}}

        alice_ws.send_json({"event": "ping"})
        assert alice_ws.receive_json() == {"event": "pong", "data": None}

    me = client.get("/api/auth/me", headers=alice["headers"])
    assert me.status_code == 200
