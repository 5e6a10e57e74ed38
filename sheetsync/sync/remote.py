"""HTTP clients for the content service.

Both clients share one ``httpx.AsyncClient`` whose cookie jar carries the
session credential, so every call is authenticated without callers having
to thread a token through.  Any transport error or non-2xx response is
raised as ``RemoteUnavailableError``.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from sheetsync.models.api import AuthStatus, ContentResponse, ContentUpdate
from sheetsync.models.document import Document


class RemoteUnavailableError(RuntimeError):
    """Raised when the content service cannot be reached or refuses a request."""


def create_http_client(
    base_url: str,
    *,
    session_token: str | None = None,
    cookie_name: str = "sheetsync_session",
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the shared client.  *transport* lets tests plug in an ASGI app or mock."""
    cookies = httpx.Cookies()
    if session_token:
        cookies.set(cookie_name, session_token)
    return httpx.AsyncClient(base_url=base_url, cookies=cookies, timeout=timeout, transport=transport)


async def _request(client: httpx.AsyncClient, method: str, url: str, **kwargs: object) -> httpx.Response:
    try:
        response = await client.request(method, url, **kwargs)  # type: ignore[arg-type]
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        msg = f"{method} {url} failed with HTTP {exc.response.status_code}"
        raise RemoteUnavailableError(msg) from exc
    except httpx.HTTPError as exc:
        msg = f"{method} {url} failed: {exc!r}"
        raise RemoteUnavailableError(msg) from exc
    return response


def _parse_content(response: httpx.Response) -> ContentResponse:
    try:
        return ContentResponse.model_validate_json(response.content)
    except ValidationError as exc:
        msg = f"Malformed content record from {response.request.url}"
        raise RemoteUnavailableError(msg) from exc


class RemoteContentClient:
    """``GET``/``PUT /api/content`` -- the user's remote document."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch(self) -> ContentResponse:
        """Fetch the remote record (the service creates a default one on first access)."""
        response = await _request(self._client, "GET", "/api/content")
        return _parse_content(response)

    async def push(self, document: Document) -> ContentResponse:
        """Replace the remote record with *document* in full."""
        body = ContentUpdate.from_document(document).model_dump(by_alias=True, mode="json")
        response = await _request(self._client, "PUT", "/api/content", json=body)
        return _parse_content(response)


class AuthClient:
    """Session status and logout.  The login handshake itself happens elsewhere."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def status(self) -> AuthStatus:
        response = await _request(self._client, "GET", "/auth/status")
        try:
            return AuthStatus.model_validate_json(response.content)
        except ValidationError as exc:
            msg = "Malformed auth status response"
            raise RemoteUnavailableError(msg) from exc

    async def logout(self) -> None:
        await _request(self._client, "POST", "/auth/logout")
        self._client.cookies.clear()
