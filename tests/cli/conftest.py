"""Fixtures wiring CLI commands to an in-process MCP app."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from mcpaudit.config import ServerSettings
from mcpaudit.protocols.mcp.app import build_server, create_app
from mcpaudit.protocols.mcp.client import MCPClient
from mcpaudit.protocols.mcp.transport import HttpTransport


@pytest.fixture
def asgi_client_factory() -> Callable[..., MCPClient]:
    app = create_app(build_server(ServerSettings()))

    def factory(url: str, **_: Any) -> MCPClient:
        http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
        return MCPClient(url, transport=HttpTransport(url, client=http))

    return factory


@pytest.fixture
def live_client(asgi_client_factory: Callable[..., MCPClient]) -> Iterator[None]:
    with patch("mcpaudit.protocols.mcp.client.MCPClient", side_effect=asgi_client_factory):
        yield
