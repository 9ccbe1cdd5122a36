"""Integration tests for direct messages, snaps and their realtime delivery."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from snapnova.database import SessionLocal
from snapnova.models import Message
from snapnova.services import cleanup_service, message_service, snap_service
from snapnova.services.presence import relay

from conftest import PNG_DATA_URI


def _announce(ws, user_id: str) -> None:
    ws.send_json({"event": "userOnline", "data": user_id})
    status = ws.receive_json()
    assert status == {"event": "userStatusChange", "data": {"user_id": user_id, "is_online": True}}


def test_message_to_offline_user_is_durable(client, register):
    alice = register("alice")
    bob = register("bob")
    assert not relay.is_connected(bob["id"])

    sent = client.post("/api/messages", json={"receiver_id": bob["id"], "text": "hi"}, headers=alice["headers"])
    assert sent.status_code == 201
    assert sent.json()["chat_message"]["text"] == "hi"
    assert sent.json()["chat_message"]["media_type"] == "text"

    thread = client.get(f"/api/messages/{alice['id']}", headers=bob["headers"])
    assert thread.status_code == 200
    assert [message["text"] for message in thread.json()["messages"]] == ["hi"]


def test_message_reaches_online_receiver(client, register):
    alice = register("alice")
    bob = register("bob")

    with client.websocket_connect("/api/ws") as ws:
        _announce(ws, bob["id"])
        sent = client.post("/api/messages", json={"receiver_id": bob["id"], "text": "live"}, headers=alice["headers"])
        assert sent.status_code == 201

        frame = ws.receive_json()
        assert frame["event"] == "receiveMessage"
        assert frame["data"]["text"] == "live"
        assert frame["data"]["sender_id"] == alice["id"]


def test_message_requires_text_or_media(client, register):
    alice = register("alice")
    bob = register("bob")
    empty = client.post("/api/messages", json={"receiver_id": bob["id"], "text": "  "}, headers=alice["headers"])
    assert empty.status_code == 400

    missing = client.post(
        "/api/messages",
        json={"receiver_id": "00000000-0000-0000-0000-000000000003", "text": "hello?"},
        headers=alice["headers"],
    )
    assert missing.status_code == 404


def test_media_message_is_uploaded(client, register, uploads):
    alice = register("alice")
    bob = register("bob")
    sent = client.post(
        "/api/messages",
        json={"receiver_id": bob["id"], "media_data": PNG_DATA_URI},
        headers=alice["headers"],
    )
    assert sent.status_code == 201
    body = sent.json()["chat_message"]
    assert body["media_type"] == "image"
    assert body["media_url"].startswith("https://cdn.snapnova.test/messages/")
    assert uploads == [{"folder": "messages", "content_type": "image/png", "size": uploads[0]["size"]}]


def test_invalid_media_is_rejected(client, register, uploads):
    alice = register("alice")
    bob = register("bob")
    response = client.post(
        "/api/messages",
        json={"receiver_id": bob["id"], "media_data": "data:text/plain;base64,aGVsbG8="},
        headers=alice["headers"],
    )
    assert response.status_code == 400
    assert uploads == []


def test_conversations_seen_and_delete(client, register):
    alice = register("alice")
    bob = register("bob")
    carol = register("carol")

    first = client.post("/api/messages", json={"receiver_id": bob["id"], "text": "one"}, headers=alice["headers"])
    client.post("/api/messages", json={"receiver_id": bob["id"], "text": "two"}, headers=alice["headers"])

    conversations = client.get("/api/messages/conversations", headers=bob["headers"]).json()["conversations"]
    assert len(conversations) == 1
    assert conversations[0]["user"]["id"] == alice["id"]
    assert conversations[0]["last_message"]["text"] == "two"

    assert client.put("/api/messages/seen", json={"sender_id": alice["id"]}, headers=bob["headers"]).status_code == 200
    thread = client.get(f"/api/messages/{bob['id']}", headers=alice["headers"]).json()["messages"]
    assert all(message["is_seen"] for message in thread)

    message_id = first.json()["chat_message"]["id"]
    assert client.delete(f"/api/messages/{message_id}", headers=carol["headers"]).status_code == 403
    assert client.delete(f"/api/messages/{message_id}", headers=bob["headers"]).status_code == 200
    assert client.delete(f"/api/messages/{message_id}", headers=bob["headers"]).status_code == 404


def test_conversation_returns_latest_hundred_in_order(client, register):
    alice = register("alice")
    bob = register("bob")
    start = datetime.now(timezone.utc) - timedelta(hours=1)
    with SessionLocal() as session:
        for index in range(105):
            session.add(
                Message(
                    sender_id=UUID(alice["id"]),
                    receiver_id=UUID(bob["id"]),
                    text=f"m{index}",
                    created_at=start + timedelta(seconds=index),
                )
            )
        session.commit()

    thread = client.get(f"/api/messages/{alice['id']}", headers=bob["headers"]).json()["messages"]
    assert len(thread) == 100
    assert thread[0]["text"] == "m5"
    assert thread[-1]["text"] == "m104"


def test_snap_requires_media(client, register, uploads):
    alice = register("alice")
    bob = register("bob")
    response = client.post("/api/snaps/upload", json={"receiver_id": bob["id"]}, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == "Media is required for snap"


def test_snap_countdown_starts_on_receiver_open(client, register, uploads, monkeypatch):
    alice = register("alice")
    bob = register("bob")
    eve = register("eve")

    uploaded = client.post(
        "/api/snaps/upload",
        json={"receiver_id": bob["id"], "media_data": PNG_DATA_URI, "snap_duration": 5},
        headers=alice["headers"],
    )
    assert uploaded.status_code == 201
    snap = uploaded.json()["snap"]
    assert snap["is_snap"] is True
    assert snap["expires_at"] is None
    snap_id = snap["id"]

    by_sender = client.get(f"/api/snaps/{snap_id}", headers=alice["headers"]).json()["snap"]
    assert by_sender["expires_at"] is None

    assert client.get(f"/api/snaps/{snap_id}", headers=eve["headers"]).status_code == 403

    opened = client.get(f"/api/snaps/{snap_id}", headers=bob["headers"]).json()["snap"]
    assert opened["expires_at"] is not None
    assert opened["is_seen"] is True

    reopened = client.get(f"/api/snaps/{snap_id}", headers=bob["headers"]).json()["snap"]
    assert reopened["expires_at"] == opened["expires_at"]

    later = datetime.now(timezone.utc) + timedelta(seconds=6)
    monkeypatch.setattr(snap_service, "_now", lambda: later)
    monkeypatch.setattr(message_service, "_now", lambda: later)

    assert client.get(f"/api/snaps/{snap_id}", headers=bob["headers"]).status_code == 404
    thread = client.get(f"/api/messages/{alice['id']}", headers=bob["headers"]).json()["messages"]
    assert thread == []

    summary = cleanup_service.run_cleanup(SessionLocal, now=later)
    assert summary.messages == 1
    with SessionLocal() as session:
        assert session.get(Message, UUID(snap_id)) is None


def test_snap_upload_notifies_online_receiver(client, register, uploads):
    alice = register("alice")
    bob = register("bob")

    with client.websocket_connect("/api/ws") as ws:
        _announce(ws, bob["id"])
        uploaded = client.post(
            "/api/snaps/upload",
            json={"receiver_id": bob["id"], "media_data": PNG_DATA_URI},
            headers=alice["headers"],
        )
        assert uploaded.status_code == 201

        first = ws.receive_json()
        assert first["event"] == "receiveMessage"
        assert first["data"]["is_snap"] is True
        second = ws.receive_json()
        assert second["event"] == "notification"
        assert second["data"]["type"] == "snap"
        assert second["data"]["message"] == "You received a new snap!"


def test_only_participants_delete_snaps(client, register, uploads):
    alice = register("alice")
    bob = register("bob")
    eve = register("eve")
    snap_id = client.post(
        "/api/snaps/upload",
        json={"receiver_id": bob["id"], "media_data": PNG_DATA_URI},
        headers=alice["headers"],
    ).json()["snap"]["id"]

    assert client.delete(f"/api/snaps/{snap_id}", headers=eve["headers"]).status_code == 403
    assert client.delete(f"/api/snaps/{snap_id}", headers=alice["headers"]).status_code == 200
    assert client.get(f"/api/snaps/{snap_id}", headers=bob["headers"]).status_code == 404
