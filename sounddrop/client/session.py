"""Explicitly constructed API session used by client-side controllers.

The session owns the ``httpx.AsyncClient``, the signed-in principal (forwarded
as the gateway identity headers) and the notifier that surfaces success and
failure messages to the user.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Protocol

import httpx

from sounddrop.auth import (
    USER_AVATAR_HEADER,
    USER_EMAIL_HEADER,
    USER_ID_HEADER,
    USER_NAME_HEADER,
    Principal,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class ApiError(Exception):
    """Non-2xx response from the API, carrying the server's ``error`` message."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, message={self.message!r})"


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str, description: str | None = None) -> None: ...


class LoggingNotifier:
    """Notifier that writes user-facing messages to the log."""

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str, description: str | None = None) -> None:
        if description:
            logger.warning("%s: %s", message, description)
        else:
            logger.warning(message)


def identity_headers(principal: Principal | None) -> dict[str, str]:
    if principal is None:
        return {}
    headers = {USER_ID_HEADER: principal.id}
    if principal.email:
        headers[USER_EMAIL_HEADER] = principal.email
    if principal.name:
        headers[USER_NAME_HEADER] = principal.name
    if principal.avatar:
        headers[USER_AVATAR_HEADER] = principal.avatar
    return headers


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return response.reason_phrase or f"HTTP {response.status_code}"


class ClientSession:
    def __init__(
        self,
        base_url: str,
        *,
        principal: Principal | None = None,
        notifier: Notifier | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._principal = principal
        self._transport = transport
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def is_authenticated(self) -> bool:
        return self._principal is not None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def sign_in(self, principal: Principal) -> None:
        self._principal = principal

    def sign_out(self) -> None:
        self._principal = None

    async def open(self) -> ClientSession:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                transport=self._transport,
                timeout=self._timeout,
            )
        return self

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> ClientSession:
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send a request as the current principal and return the decoded body.

        Raises :class:`ApiError` for non-2xx responses; transport failures
        propagate as ``httpx.HTTPError``.
        """

        if self._client is None:
            raise RuntimeError("ClientSession is not open; call open() or use 'async with'")

        response = await self._client.request(
            method,
            path,
            params=params,
            json=json,
            headers=identity_headers(self._principal),
        )
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        if not response.content:
            return None
        return response.json()


__all__ = [
    "ApiError",
    "ClientSession",
    "LoggingNotifier",
    "Notifier",
    "Principal",
    "identity_headers",
]
