"""
Remote directory client.

Thin async interface over the external user directory
(``GET /users``, ``POST /users``, ``PUT /users/{id}``, ``DELETE /users/{id}``).

Manifesto:
    The directory is unreliable and non-durable: it answers writes with an
    echo of the request but does not keep them, and a later ``GET /users``
    never reflects earlier writes.  The client therefore only promises to
    (a) return what the server said and (b) raise ``DirectoryError`` when
    the call failed.  Deciding what to believe is the engine's job.

Architecture:
    ::

        DirectoryClient (Protocol)
        ├── HttpDirectoryClient   — httpx.AsyncClient against a base URL
        └── EchoDirectoryClient   — in-process echo (roster.directory.memory)

        fetch_all()          → list[Record]
        create(draft)        → dict      (echo; id untrusted)
        update(id, draft)    → dict | None
        delete(id)           → None

Tags:
    http, httpx, api-client, directory, roster

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from roster.core.errors import DirectoryError
from roster.core.logging import get_logger
from roster.core.models import Draft, Record

logger = get_logger(__name__)

_RECORDS = TypeAdapter(list[Record])


@runtime_checkable
class DirectoryClient(Protocol):
    """Contract for remote directory implementations.

    Every method raises :class:`~roster.core.errors.DirectoryError` on
    failure.  None of them guarantee durability.
    """

    async def fetch_all(self) -> list[Record]:
        ...

    async def create(self, draft: Draft) -> dict[str, Any]:
        ...

    async def update(self, record_id: int, draft: Draft) -> dict[str, Any] | None:
        ...

    async def delete(self, record_id: int) -> None:
        ...

    async def aclose(self) -> None:
        ...


class HttpDirectoryClient:
    """``httpx``-based directory client.

    Args:
        base_url: Directory root, e.g. ``https://jsonplaceholder.typicode.com``.
        timeout: Per-request timeout in seconds (``None`` waits forever).
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).

    Use as an async context manager, or call :meth:`aclose` when done.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> HttpDirectoryClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Operations ───────────────────────────────────────────────

    async def fetch_all(self) -> list[Record]:
        body = await self._request("GET", "/users")
        try:
            records = _RECORDS.validate_python(body)
        except PydanticValidationError as exc:
            raise DirectoryError("Directory returned malformed users", cause=exc).with_context(
                url=f"{self._base_url}/users"
            )
        logger.debug("directory_fetched", count=len(records))
        return records

    async def create(self, draft: Draft) -> dict[str, Any]:
        body = await self._request("POST", "/users", json=draft.to_payload())
        return body if isinstance(body, dict) else {}

    async def update(self, record_id: int, draft: Draft) -> dict[str, Any] | None:
        body = await self._request("PUT", f"/users/{record_id}", json=draft.to_payload())
        return body if isinstance(body, dict) else None

    async def delete(self, record_id: int) -> None:
        await self._request("DELETE", f"/users/{record_id}")

    # ── Transport ────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise DirectoryError(f"{method} {path} timed out", cause=exc).with_context(url=url)
        except httpx.HTTPError as exc:
            raise DirectoryError(f"{method} {path} failed: {exc}", cause=exc).with_context(url=url)

        if response.is_error:
            raise DirectoryError(
                f"{method} {path} returned HTTP {response.status_code}"
            ).with_context(url=url, http_status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DirectoryError(f"{method} {path} returned invalid JSON", cause=exc).with_context(
                url=url, http_status=response.status_code
            )


__all__ = ["DirectoryClient", "HttpDirectoryClient"]
