"""Shared fixtures for MCP protocol tests."""

from __future__ import annotations

from typing import Any

import pytest

from mcpaudit.protocols.errors import ToolError
from mcpaudit.protocols.mcp.models import ToolDescriptor
from mcpaudit.protocols.mcp.registry import ToolRegistry
from mcpaudit.protocols.mcp.server import MCPServer

ECHO_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"text": {"type": "string"}},
    "required": ["text"],
}


def _echo(arguments: dict[str, Any]) -> dict[str, Any]:
    return {"text": arguments["text"]}


async def _boom(arguments: dict[str, Any]) -> None:
    msg = "database password leaked in traceback"
    raise RuntimeError(msg)


async def _refuse(arguments: dict[str, Any]) -> None:
    msg = "quota exceeded"
    raise ToolError(msg)


@pytest.fixture
def registry() -> ToolRegistry:
    reg = ToolRegistry()
    reg.register(ToolDescriptor(name="echo", description="Echo text", input_schema=ECHO_SCHEMA), _echo)
    reg.register(ToolDescriptor(name="boom", description="Always fails"), _boom)
    reg.register(ToolDescriptor(name="refuse", description="Fails with a safe message"), _refuse)
    return reg


@pytest.fixture
def server(registry: ToolRegistry) -> MCPServer:
    return MCPServer(registry, name="test-server", version="9.9.9")
