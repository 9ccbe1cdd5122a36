"""Async HTTP client for the Snapnova REST API."""
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import httpx

from .errors import ApiError
from .refresh import RefreshCoordinator
from .session import SessionState

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"

# Requests to these paths never trigger a refresh.
AUTH_ENDPOINTS = frozenset({"/auth/refresh", "/auth/login", "/auth/register", "/auth/logout"})


class SnapnovaClient:
    """Bearer-authenticated API client that transparently refreshes its session.

    A request answered with 401 is replayed at most once, after either picking
    up a token another request already refreshed or waiting on the shared
    refresh. A 403 anywhere clears the session.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session: SessionState | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.session = session or SessionState()
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.refresher = RefreshCoordinator(self.session, self._call_refresh)

    async def __aenter__(self) -> "SnapnovaClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # Transport ------------------------------------------------------------

    async def _send(self, method: str, path: str, token: str | None, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return await self._http.request(method, path, headers=headers, **kwargs)

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        token = self.session.access_token
        response = await self._send(method, path, token, **kwargs)

        if path not in AUTH_ENDPOINTS:
            if response.status_code == 401:
                current = self.session.access_token
                if current and current != token:
                    retry_token = current
                else:
                    retry_token = await self.refresher.obtain_fresh_token()
                response = await self._send(method, path, retry_token, **kwargs)
            if response.status_code == 403:
                logger.info("Access revoked on %s %s; clearing session", method, path)
                self.session.clear()

        return self._unwrap(response)

    @staticmethod
    def _unwrap(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}
        if response.is_error:
            raise ApiError(response.status_code, str(body.get("message") or response.reason_phrase), body)
        return body

    async def _call_refresh(self, refresh_token: str) -> tuple[str, str]:
        response = await self._http.post("/auth/refresh", json={"refresh_token": refresh_token})
        body = self._unwrap(response)
        return body["access_token"], body["refresh_token"]

    async def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("DELETE", path, **kwargs)

    # Session --------------------------------------------------------------

    def _store_session(self, body: dict[str, Any]) -> dict[str, Any]:
        self.session.set_tokens(body["access_token"], body["refresh_token"])
        self.session.user = body.get("user")
        return body

    async def register(self, username: str, email: str, password: str) -> dict[str, Any]:
        body = await self.post("/auth/register", json={"username": username, "email": email, "password": password})
        return self._store_session(body)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        body = await self.post("/auth/login", json={"email": email, "password": password})
        return self._store_session(body)

    async def logout(self) -> None:
        """Tell the server to drop the session; local state is cleared regardless."""

        try:
            await self.post("/auth/logout")
        except (ApiError, httpx.HTTPError):
            logger.info("Server-side logout failed; clearing local session anyway")
        finally:
            self.session.clear()

    async def me(self) -> dict[str, Any]:
        body = await self.get("/auth/me")
        self.session.user = body.get("user")
        return body

    # Convenience ----------------------------------------------------------

    async def conversation(self, user_id: UUID | str) -> list[dict[str, Any]]:
        body = await self.get(f"/messages/{user_id}")
        return body.get("messages", [])

    async def send_message(self, receiver_id: UUID | str, text: str) -> dict[str, Any]:
        body = await self.post("/messages", json={"receiver_id": str(receiver_id), "text": text})
        return body["chat_message"]

    async def notifications(self) -> list[dict[str, Any]]:
        body = await self.get("/users/notifications")
        return body.get("notifications", [])


__all__ = ["AUTH_ENDPOINTS", "DEFAULT_BASE_URL", "SnapnovaClient"]
