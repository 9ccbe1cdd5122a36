"""Inline media uploads to DigitalOcean Spaces.

Write endpoints receive media as base64 data URIs
(``data:image/png;base64,....``). This module decodes and validates the
payload, pushes the bytes to Spaces and hands back the public URL that gets
stored on the record.
"""
from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import cast
from urllib.parse import urlparse

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool

from ..config import get_settings
from ..security.secrets import MissingSecretError, is_placeholder, require_secret

logger = logging.getLogger(__name__)

ROOT_FOLDER = "snapnova"

ALLOWED_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
}

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,(?P<payload>.*)$", re.DOTALL)


@dataclass(frozen=True)
class SpacesConfig:
    """Runtime configuration extracted from environment variables."""

    key: str
    secret: str
    region: str
    bucket: str
    api_endpoint: str
    public_endpoint: str


@dataclass(frozen=True)
class DecodedMedia:
    content: bytes
    content_type: str

    @property
    def kind(self) -> str:
        return "video" if self.content_type.startswith("video/") else "image"

    @property
    def extension(self) -> str:
        return ALLOWED_CONTENT_TYPES.get(self.content_type, "")


class InvalidMediaError(ValueError):
    """Raised when an inline media payload cannot be decoded or is not allowed."""


class MediaConfigurationError(RuntimeError):
    """Raised when required DigitalOcean Spaces settings are missing or invalid."""


class MediaUploadError(RuntimeError):
    """Raised when an upload to DigitalOcean Spaces fails."""


@lru_cache(maxsize=1)
def load_spaces_config() -> SpacesConfig:
    """Read and validate DigitalOcean Spaces configuration from the environment."""

    required: dict[str, str | None] = {
        "DO_SPACES_KEY": os.getenv("DO_SPACES_KEY"),
        "DO_SPACES_SECRET": os.getenv("DO_SPACES_SECRET"),
        "DO_SPACES_REGION": os.getenv("DO_SPACES_REGION"),
        "DO_SPACES_NAME": os.getenv("DO_SPACES_NAME"),
        "DO_SPACES_ENDPOINT": os.getenv("DO_SPACES_ENDPOINT"),
    }

    missing = [name for name, value in required.items() if not value or not value.strip()]
    if missing:
        raise MediaConfigurationError(
            "Missing required DigitalOcean Spaces configuration: " + ", ".join(sorted(missing))
        )

    try:
        key = require_secret("DO_SPACES_KEY")
        secret = require_secret("DO_SPACES_SECRET")
    except MissingSecretError as exc:
        raise MediaConfigurationError(str(exc)) from exc

    region = cast(str, required["DO_SPACES_REGION"]).strip()
    bucket = cast(str, required["DO_SPACES_NAME"]).strip()
    endpoint_raw = cast(str, required["DO_SPACES_ENDPOINT"]).strip()

    if is_placeholder(region):
        raise MediaConfigurationError("DO_SPACES_REGION must be set to a valid region identifier")
    if is_placeholder(bucket):
        raise MediaConfigurationError("DO_SPACES_NAME must be set to the target bucket name")

    public_endpoint = endpoint_raw.rstrip("/")
    parsed = urlparse(public_endpoint)
    if not parsed.scheme:
        public_endpoint = f"https://{public_endpoint.lstrip(':/')}"
        parsed = urlparse(public_endpoint)
    if not (parsed.netloc or parsed.path):
        raise MediaConfigurationError("DO_SPACES_ENDPOINT must include a hostname.")

    return SpacesConfig(
        key=key,
        secret=secret,
        region=region,
        bucket=bucket,
        api_endpoint=f"https://{region}.digitaloceanspaces.com",
        public_endpoint=parsed.geturl().rstrip("/"),
    )


@lru_cache(maxsize=1)
def get_spaces_client() -> BaseClient:
    """Create a singleton boto3 client for Spaces interactions."""

    config = load_spaces_config()
    session = Session()
    return session.client(
        "s3",
        region_name=config.region,
        endpoint_url=config.api_endpoint,
        aws_access_key_id=config.key,
        aws_secret_access_key=config.secret,
    )


def decode_data_uri(value: str, *, max_bytes: int | None = None) -> DecodedMedia:
    """Decode a base64 data URI, enforcing the allowed types and size limit."""

    if not value or not value.strip():
        raise InvalidMediaError("Media payload is empty")
    match = _DATA_URI.match(value.strip())
    if match is None:
        raise InvalidMediaError("Media must be a base64 data URI")

    content_type = (match.group("mime") or "").lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidMediaError("Invalid file type. Only images and videos are allowed.")

    try:
        content = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidMediaError("Media payload is not valid base64") from exc
    if not content:
        raise InvalidMediaError("Media payload is empty")

    limit = max_bytes if max_bytes is not None else get_settings().media_max_bytes
    if len(content) > limit:
        raise InvalidMediaError(f"Media exceeds the {limit} byte limit")
    return DecodedMedia(content=content, content_type=content_type)


def _object_key(folder: str, extension: str) -> str:
    safe_folder = re.sub(r"[^A-Za-z0-9_-]", "-", folder.strip("/")) or "uploads"
    return f"{ROOT_FOLDER}/{safe_folder}/{uuid.uuid4().hex}{extension}"


def build_public_url(key: str) -> str:
    """Build the public URL for an object stored in DigitalOcean Spaces."""

    config = load_spaces_config()
    return f"{config.public_endpoint}/{key.lstrip('/')}"


async def upload_media(media: DecodedMedia, *, folder: str, client: BaseClient | None = None) -> str:
    """Upload decoded media and return its public URL."""

    config = load_spaces_config()
    s3_client = client or get_spaces_client()
    key = _object_key(folder, media.extension)

    def _upload() -> None:
        try:
            s3_client.put_object(
                Bucket=config.bucket,
                Key=key,
                Body=media.content,
                ACL="public-read",
                ContentType=media.content_type,
            )
        except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network bound
            logger.exception("Upload to DigitalOcean Spaces failed: %s", exc)
            raise MediaUploadError(f"Upload to DigitalOcean Spaces failed: {exc}") from exc

    await run_in_threadpool(_upload)
    return build_public_url(key)


async def upload_inline_media(data_uri: str, *, folder: str) -> tuple[str, str]:
    """Decode ``data_uri`` and upload it, translating failures to HTTP errors.

    Returns ``(url, kind)`` where ``kind`` is ``"image"`` or ``"video"``.
    """

    try:
        media = decode_data_uri(data_uri)
    except InvalidMediaError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        url = await upload_media(media, folder=folder)
    except (MediaConfigurationError, MediaUploadError) as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return url, media.kind


__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "DecodedMedia",
    "InvalidMediaError",
    "MediaConfigurationError",
    "MediaUploadError",
    "SpacesConfig",
    "build_public_url",
    "decode_data_uri",
    "get_spaces_client",
    "load_spaces_config",
    "upload_inline_media",
    "upload_media",
]
