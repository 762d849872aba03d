"""MCP transports — request/response exchange of JSON envelopes.

Each transport satisfies the :class:`MCPTransport` protocol, providing
``connect``, ``send`` and ``close``.  ``send`` performs one full round trip
and returns the decoded response envelope.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx

from mcpaudit.protocols.errors import ConnectionError


@runtime_checkable
class MCPTransport(Protocol):
    """Abstract transport for MCP JSON-RPC communication."""

    async def connect(self) -> None: ...
    async def send(self, data: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]: ...
    async def close(self) -> None: ...


class HttpTransport:
    """POSTs each envelope to a single HTTP endpoint.

    No timeout is applied unless one is given; a caller-side
    ``asyncio.timeout`` works as well.  Pass *client* to reuse an existing
    :class:`httpx.AsyncClient` (it is then not closed by :meth:`close`).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Open the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True

    async def send(self, data: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        """POST *data* and return the decoded JSON body."""
        if self._client is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        try:
            response = await self._client.post(self._url, json=data, headers=headers)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ConnectionError(f"MCP request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ConnectionError(f"MCP server returned invalid JSON: {exc}") from exc
        if not isinstance(body, dict):
            msg = "MCP server returned a non-object JSON body"
            raise ConnectionError(msg)
        return body

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        if self._owns_client:
            self._client = None
