"""Application entry point for the FastAPI backend."""
from __future__ import annotations

import asyncio
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import create_session, init_db
from .errors import register_exception_handlers
from .routers import (
    auth_router,
    contacts_router,
    messages_router,
    realtime_router,
    snaps_router,
    stories_router,
    system_router,
    users_router,
)
from .security.tokens import ensure_signing_keys
from .services import CleanupError, run_cleanup

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version
API_PREFIX = "/api"
DISABLE_CLEANUP = settings.disable_cleanup or os.getenv("PYTEST_CURRENT_TEST") is not None

app = FastAPI(title=APP_NAME, version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(messages_router, prefix=API_PREFIX)
app.include_router(snaps_router, prefix=API_PREFIX)
app.include_router(stories_router, prefix=API_PREFIX)
app.include_router(contacts_router, prefix=API_PREFIX)
app.include_router(realtime_router, prefix=API_PREFIX)
app.include_router(system_router, prefix=API_PREFIX)

_cleanup_task: asyncio.Task[None] | None = None
_cleanup_stop = asyncio.Event()


async def _run_cleanup_once() -> None:
    """Execute a single expiry sweep in a worker thread."""

    try:
        await asyncio.to_thread(run_cleanup, create_session)
    except CleanupError:
        logger.exception("Scheduled expiry sweep failed")
    except Exception:  # pragma: no cover - keeps the loop alive
        logger.exception("Unexpected error during expiry sweep")


async def _cleanup_loop() -> None:
    """Background task that sweeps expired records on a fixed interval."""

    while not _cleanup_stop.is_set():
        await _run_cleanup_once()
        try:
            await asyncio.wait_for(_cleanup_stop.wait(), timeout=settings.expiry_sweep_seconds)
        except asyncio.TimeoutError:
            continue


@app.on_event("startup")
async def _startup() -> None:
    """Verify signing keys and the schema, then start the expiry sweep."""

    ensure_signing_keys()

    try:
        init_db()
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Database initialisation failed")
        raise

    if DISABLE_CLEANUP:
        logger.info("Background expiry sweep disabled")
        return

    global _cleanup_task
    if _cleanup_task is None or _cleanup_task.done():
        _cleanup_stop.clear()
        _cleanup_task = asyncio.create_task(_cleanup_loop())


@app.on_event("shutdown")
async def _shutdown() -> None:
    """Stop the expiry sweep cleanly during application shutdown."""

    if DISABLE_CLEANUP:
        return

    _cleanup_stop.set()
    if _cleanup_task is not None:
        try:
            await _cleanup_task
        except asyncio.CancelledError:  # pragma: no cover
            pass


@app.get(API_PREFIX, tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}
