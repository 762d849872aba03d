"""Tests for HttpTransport using an httpx mock transport."""

from __future__ import annotations

import httpx
import pytest

from mcpaudit.protocols.errors import ConnectionError, InitializationFailedError
from mcpaudit.protocols.mcp.client import MCPClient
from mcpaudit.protocols.mcp.transport import HttpTransport, MCPTransport

URL = "http://test/mcp"


def _transport_with(handler) -> HttpTransport:  # noqa: ANN001
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(URL, client=client)


class TestHttpTransport:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(HttpTransport(URL), MCPTransport)

    async def test_send_posts_json_with_headers(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["session"] = request.headers.get("MCP-Session-ID")
            seen["body"] = request.read()
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {}})

        transport = _transport_with(handler)
        body = await transport.send({"id": 1, "method": "tools/list"}, {"MCP-Session-ID": "s1"})
        assert body == {"jsonrpc": "2.0", "id": 1, "result": {}}
        assert seen["method"] == "POST"
        assert seen["session"] == "s1"
        assert b'"tools/list"' in seen["body"]

    async def test_send_before_connect(self) -> None:
        transport = HttpTransport(URL)
        with pytest.raises(RuntimeError, match="not connected"):
            await transport.send({}, {})

    async def test_http_error_status(self) -> None:
        transport = _transport_with(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(ConnectionError, match="MCP request failed"):
            await transport.send({}, {})

    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = _transport_with(handler)
        with pytest.raises(ConnectionError):
            await transport.send({}, {})

    async def test_invalid_json_body(self) -> None:
        transport = _transport_with(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ConnectionError, match="invalid JSON"):
            await transport.send({}, {})

    async def test_non_object_body(self) -> None:
        transport = _transport_with(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(ConnectionError, match="non-object"):
            await transport.send({}, {})

    async def test_connect_and_close_owned_client(self) -> None:
        transport = HttpTransport(URL, timeout=5.0)
        await transport.connect()
        assert transport.connected
        await transport.close()
        assert not transport.connected

    async def test_close_keeps_borrowed_client(self) -> None:
        client = httpx.AsyncClient()
        transport = HttpTransport(URL, client=client)
        await transport.close()
        assert transport.connected
        assert not client.is_closed
        await client.aclose()

    async def test_invalid_url(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        transport = _transport_with(handler)
        with pytest.raises(ConnectionError, match="MCP request failed"):
            await transport.send({}, {})


class TestClientWithBadUrl:
    async def test_initialize_wraps_invalid_url(self) -> None:
        client = MCPClient("http://bad\x00host/mcp")
        with pytest.raises(InitializationFailedError):
            await client.initialize()
        await client.close()
