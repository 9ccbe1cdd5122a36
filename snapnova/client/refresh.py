"""Single-flight access token refresh.

Concurrent requests that hit a 401 share one refresh call: the first caller
performs it, everybody arriving while it is in flight parks on a future that
settles with the outcome of that one call.
"""
from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import Awaitable, Callable

from .errors import SessionExpiredError
from .session import SessionState

logger = logging.getLogger(__name__)

RefreshFunc = Callable[[str], Awaitable[tuple[str, str]]]


class RefreshState(StrEnum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshCoordinator:
    def __init__(self, session: SessionState, refresh_func: RefreshFunc) -> None:
        self._session = session
        self._refresh_func = refresh_func
        self._state = RefreshState.IDLE
        self._waiters: list[asyncio.Future[str]] = []

    @property
    def state(self) -> RefreshState:
        return self._state

    async def obtain_fresh_token(self) -> str:
        """Return a new access token, refreshing at most once for all callers.

        Raises :class:`SessionExpiredError` after clearing the session when no
        refresh token is stored or the refresh call fails.
        """

        if self._state is RefreshState.REFRESHING:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            return await waiter

        refresh_token = self._session.refresh_token
        if not refresh_token:
            self._force_logout()
            raise SessionExpiredError(401, "No refresh token available")

        self._state = RefreshState.REFRESHING
        try:
            try:
                access_token, new_refresh_token = await self._refresh_func(refresh_token)
            except Exception as exc:
                logger.info("Token refresh failed: %s", exc)
                error = SessionExpiredError(401, "Session expired")
                self._settle(error=error)
                self._force_logout()
                raise error from exc

            self._session.set_tokens(access_token, new_refresh_token)
            self._settle(token=access_token)
            return access_token
        finally:
            self._state = RefreshState.IDLE
            if self._waiters:
                self._settle(error=SessionExpiredError(401, "Token refresh was interrupted"))

    def _settle(self, *, token: str | None = None, error: Exception | None = None) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(token)

    def _force_logout(self) -> None:
        self._session.clear()


__all__ = ["RefreshCoordinator", "RefreshState"]
