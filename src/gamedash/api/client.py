"""Async HTTP client for the game-server dashboard backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx

from gamedash.api.errors import ApiError, AuthError, TransportError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_id"
DEFAULT_TIMEOUT = 30.0


def _error_message(response: httpx.Response) -> str:
    """Pull a human-readable message out of a failed response body."""
    msg = response.reason_phrase
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, str):
        msg = data
    elif isinstance(data, dict):
        if data.get("error"):
            msg = str(data["error"])
        elif data.get("message"):
            msg = str(data["message"])
    else:
        text = response.text.strip()
        if text:
            msg = text
    return msg or f"API error ({response.status_code})"


class DashboardClient:
    """Thin credentialed wrapper around :class:`httpx.AsyncClient`.

    Sends the session cookie and/or bearer token on every request,
    including long-lived streams.  HTTP-level failures are mapped onto
    :mod:`gamedash.api.errors`; ``ok: false`` bodies are returned as-is
    so callers can decide how to surface them.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        cookie: str | None = None,
        verify: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers: dict[str, str] = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        cookies = {SESSION_COOKIE: cookie} if cookie else None
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            cookies=cookies,
            verify=verify,
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> DashboardClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # -- Request/response --------------------------------------------------

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("POST", path, json=json or {})

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        self._raise_for_status(response)
        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(f"{method} {path} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise TransportError(f"{method} {path} returned {type(data).__name__}, not an object")
        return data

    # -- Streaming ---------------------------------------------------------

    @asynccontextmanager
    async def stream(self, path: str) -> AsyncIterator[httpx.Response]:
        """Open a long-lived GET stream; no read timeout is applied.

        Stalled streams are only detected through the transport's own
        error signal.
        """
        timeout = httpx.Timeout(DEFAULT_TIMEOUT, read=None)
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        try:
            async with self._client.stream("GET", path, headers=headers, timeout=timeout) as resp:
                if resp.is_error:
                    await resp.aread()
                self._raise_for_status(resp)
                yield resp
        except httpx.HTTPError as exc:
            raise TransportError(f"stream {path} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        message = _error_message(response)
        logger.debug("HTTP %d from %s: %s", response.status_code, response.url, message)
        if response.status_code in (401, 403):
            raise AuthError(message, status_code=response.status_code)
        raise ApiError(message, status_code=response.status_code)
