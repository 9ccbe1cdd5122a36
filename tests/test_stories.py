"""Integration tests for 24-hour stories."""
from __future__ import annotations

from datetime import timedelta

from snapnova.services import story_service

from conftest import MP4_DATA_URI, PNG_DATA_URI


def _post_story(client, user, data_uri=PNG_DATA_URI, caption="sunset"):
    response = client.post("/api/stories", json={"media_data": data_uri, "caption": caption}, headers=user["headers"])
    assert response.status_code == 201, response.text
    return response.json()["story"]


def test_story_requires_media(client, register, uploads):
    alice = register("alice")
    response = client.post("/api/stories", json={"caption": "nothing"}, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == "Media is required"


def test_story_expires_one_day_after_creation(client, register, uploads):
    alice = register("alice")
    story = _post_story(client, alice)
    assert story["media_type"] == "image"
    assert story["viewers"] == []

    video = _post_story(client, alice, data_uri=MP4_DATA_URI, caption="clip")
    assert video["media_type"] == "video"
    assert [item["folder"] for item in uploads] == ["stories", "stories"]


def test_feed_visibility_window(client, register, befriend, uploads, monkeypatch):
    alice = register("alice")
    bob = register("bob")
    befriend(alice, bob)

    created_at = story_service._now()
    _post_story(client, alice)

    monkeypatch.setattr(story_service, "_now", lambda: created_at + timedelta(hours=23, minutes=59))
    feed = client.get("/api/stories/feed", headers=bob["headers"]).json()["stories_feed"]
    assert [bucket["user"]["id"] for bucket in feed] == [alice["id"]]
    assert len(feed[0]["stories"]) == 1

    monkeypatch.setattr(story_service, "_now", lambda: created_at + timedelta(hours=24, minutes=1))
    assert client.get("/api/stories/feed", headers=bob["headers"]).json()["stories_feed"] == []
    assert client.get("/api/stories/mine", headers=alice["headers"]).json()["stories"] == []


def test_feed_is_limited_to_friends_and_self(client, register, befriend, uploads):
    alice = register("alice")
    bob = register("bob")
    stranger = register("stranger")
    befriend(alice, bob)

    _post_story(client, alice)
    _post_story(client, bob)
    _post_story(client, stranger)

    feed = client.get("/api/stories/feed", headers=alice["headers"]).json()["stories_feed"]
    assert {bucket["user"]["id"] for bucket in feed} == {alice["id"], bob["id"]}

    mine = client.get("/api/stories/mine", headers=stranger["headers"]).json()["stories"]
    assert len(mine) == 1


def test_view_records_each_friend_once(client, register, befriend, uploads):
    alice = register("alice")
    bob = register("bob")
    stranger = register("stranger")
    befriend(alice, bob)
    story = _post_story(client, alice)

    first = client.put(f"/api/stories/{story['id']}/view", headers=bob["headers"])
    assert first.status_code == 200
    assert first.json()["story"]["viewers"] == [bob["id"]]

    second = client.put(f"/api/stories/{story['id']}/view", headers=bob["headers"])
    assert second.json()["story"]["viewers"] == [bob["id"]]

    own = client.put(f"/api/stories/{story['id']}/view", headers=alice["headers"])
    assert own.json()["story"]["viewers"] == [bob["id"]]

    forbidden = client.put(f"/api/stories/{story['id']}/view", headers=stranger["headers"])
    assert forbidden.status_code == 403


def test_only_owner_deletes_story(client, register, befriend, uploads):
    alice = register("alice")
    bob = register("bob")
    befriend(alice, bob)
    story = _post_story(client, alice)

    assert client.delete(f"/api/stories/{story['id']}", headers=bob["headers"]).status_code == 404
    assert client.delete(f"/api/stories/{story['id']}", headers=alice["headers"]).status_code == 200
    assert client.put(f"/api/stories/{story['id']}/view", headers=bob["headers"]).status_code == 404
