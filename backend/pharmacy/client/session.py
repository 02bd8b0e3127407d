"""Async API client with automatic access-token refresh.

Every request except login/register/refresh carries the stored access
token. When one comes back 401, the client refreshes the token pair once
(however many requests are failing at the same time) and retries each of
those requests exactly once with the new token.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .token_storage import MemoryTokenStorage, TokenStorage

logger = logging.getLogger(__name__)

AUTH_ENDPOINTS = ("/auth/login", "/auth/register", "/auth/refresh")


class SessionError(Exception):
    """Non-2xx answer to a login/register call."""

    def __init__(self, status_code: int, message: str, body: Any = None):
        self.status_code = status_code
        self.message = message
        self.body = body
        super().__init__(f"{status_code}: {message}")


def _is_auth_endpoint(url: str) -> bool:
    path = httpx.URL(url).path.rstrip("/")
    return path.endswith(AUTH_ENDPOINTS)


class SessionClient:
    def __init__(
        self,
        base_url: str,
        *,
        storage: TokenStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.storage = storage or MemoryTokenStorage()
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        # Shared by every caller waiting on the same refresh
        self._refresh_task: asyncio.Task | None = None

    async def __aenter__(self) -> "SessionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _send(self, method: str, url: str, token: str | None, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return await self._http.request(method, url, headers=headers, **kwargs)

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if _is_auth_endpoint(url):
            return await self._send(method, url, None, **kwargs)

        sent_token = self.storage.access_token
        response = await self._send(method, url, sent_token, **kwargs)
        if response.status_code != 401:
            return response

        current = self.storage.access_token
        if current and current != sent_token:
            # Someone else already refreshed while this request was in flight
            return await self._send(method, url, current, **kwargs)

        if not await self._refresh_once():
            return response

        return await self._send(method, url, self.storage.access_token, **kwargs)

    async def _refresh_once(self) -> bool:
        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._refresh())
        # A cancelled waiter must not cancel the refresh the others are waiting on
        return await asyncio.shield(self._refresh_task)

    async def _refresh(self) -> bool:
        try:
            refresh_token = self.storage.refresh_token
            if not refresh_token:
                self.storage.clear()
                return False

            try:
                response = await self._http.post("/auth/refresh", json={"refreshToken": refresh_token})
            except httpx.TransportError:
                logger.warning("Token refresh failed: transport error")
                self.storage.clear()
                raise

            if not response.is_success:
                logger.warning("Token refresh rejected with status %s", response.status_code)
                self.storage.clear()
                return False

            try:
                data = response.json()
            except ValueError:
                data = None
            if not isinstance(data, dict):
                logger.warning("Token refresh returned a non-JSON-object body")
                self.storage.clear()
                return False

            access_token = data.get("accessToken")
            if not access_token:
                self.storage.clear()
                return False

            self.storage.set_tokens(access_token, data.get("refreshToken") or refresh_token)
            logger.info("Access token refreshed")
            return True
        finally:
            self._refresh_task = None

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def _authenticate(self, url: str, payload: dict) -> dict:
        response = await self.request("POST", url, json=payload)
        try:
            data = response.json()
        except ValueError:
            data = None
        if not response.is_success:
            message = data.get("message") if isinstance(data, dict) else response.reason_phrase
            raise SessionError(response.status_code, message or "Request failed", data)

        self.storage.set_tokens(data["accessToken"], data["refreshToken"])
        return data

    async def login(self, email: str, password: str) -> dict:
        return await self._authenticate("/auth/login", {"email": email, "password": password})

    async def register(self, email: str, password: str, full_name: str) -> dict:
        return await self._authenticate(
            "/auth/register",
            {"email": email, "password": password, "fullName": full_name},
        )

    async def logout(self) -> None:
        try:
            if self.storage.access_token:
                await self.request("POST", "/auth/logout")
        finally:
            self.storage.clear()
