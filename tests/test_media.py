"""Tests for inline media decoding and the Spaces upload path."""
from __future__ import annotations

import asyncio
import base64

import pytest
from fastapi import HTTPException

from snapnova.services import media_service
from snapnova.services.media_service import (
    InvalidMediaError,
    MediaConfigurationError,
    decode_data_uri,
    upload_inline_media,
    upload_media,
)

from conftest import PNG_DATA_URI


class RecordingClient:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def put_object(self, **kwargs) -> None:
        self.calls.append(kwargs)


@pytest.fixture
def spaces_env(monkeypatch):
    monkeypatch.setenv("DO_SPACES_KEY", "spaces-key-123")
    monkeypatch.setenv("DO_SPACES_SECRET", "spaces-secret-456")
    monkeypatch.setenv("DO_SPACES_REGION", "nyc3")
    monkeypatch.setenv("DO_SPACES_NAME", "snapnova-media")
    monkeypatch.setenv("DO_SPACES_ENDPOINT", "snapnova-media.nyc3.cdn.digitaloceanspaces.com")
    media_service.load_spaces_config.cache_clear()
    media_service.get_spaces_client.cache_clear()
    yield
    media_service.load_spaces_config.cache_clear()
    media_service.get_spaces_client.cache_clear()


def test_decode_accepts_whitelisted_types():
    media = decode_data_uri(PNG_DATA_URI)
    assert media.content_type == "image/png"
    assert media.kind == "image"
    assert media.extension == ".png"


@pytest.mark.parametrize(
    "value",
    [
        "",
        "not a data uri",
        "data:application/pdf;base64,JVBERi0=",
        "data:image/png;base64,***",
    ],
)
def test_decode_rejects_bad_payloads(value):
    with pytest.raises(InvalidMediaError):
        decode_data_uri(value)


def test_decode_enforces_size_limit():
    payload = "data:image/jpeg;base64," + base64.b64encode(b"x" * 32).decode("ascii")
    with pytest.raises(InvalidMediaError):
        decode_data_uri(payload, max_bytes=16)
    assert decode_data_uri(payload, max_bytes=32).content_type == "image/jpeg"


def test_upload_puts_public_object(spaces_env):
    recorder = RecordingClient()
    url = asyncio.run(upload_media(decode_data_uri(PNG_DATA_URI), folder="snaps", client=recorder))

    assert len(recorder.calls) == 1
    call = recorder.calls[0]
    assert call["Bucket"] == "snapnova-media"
    assert call["ACL"] == "public-read"
    assert call["ContentType"] == "image/png"
    assert call["Key"].startswith("snapnova/snaps/") and call["Key"].endswith(".png")
    assert url == f"https://snapnova-media.nyc3.cdn.digitaloceanspaces.com/{call['Key']}"


def test_missing_configuration_is_reported(monkeypatch):
    for name in ("DO_SPACES_KEY", "DO_SPACES_SECRET", "DO_SPACES_REGION", "DO_SPACES_NAME", "DO_SPACES_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
    media_service.load_spaces_config.cache_clear()
    with pytest.raises(MediaConfigurationError):
        media_service.load_spaces_config()

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(upload_inline_media(PNG_DATA_URI, folder="stories"))
    assert excinfo.value.status_code == 500
    media_service.load_spaces_config.cache_clear()


def test_inline_upload_maps_invalid_media_to_bad_request():
    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(upload_inline_media("data:text/html;base64,PGI+", folder="stories"))
    assert excinfo.value.status_code == 400
