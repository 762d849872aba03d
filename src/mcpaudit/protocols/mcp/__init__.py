"""MCP protocol — envelope models, registry, sessions, server and client."""

from mcpaudit.protocols.mcp.client import MCPClient
from mcpaudit.protocols.mcp.models import (
    Capabilities,
    FeatureFlags,
    FeatureSupport,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    ToolCallResult,
    ToolDescriptor,
)
from mcpaudit.protocols.mcp.registry import ToolRegistry
from mcpaudit.protocols.mcp.server import MCPServer
from mcpaudit.protocols.mcp.session import ClientSession, SessionState, SessionStore
from mcpaudit.protocols.mcp.transport import HttpTransport, MCPTransport

__all__ = [
    "Capabilities",
    "ClientSession",
    "FeatureFlags",
    "FeatureSupport",
    "HttpTransport",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCPClient",
    "MCPServer",
    "MCPTransport",
    "SessionState",
    "SessionStore",
    "ToolCallResult",
    "ToolDescriptor",
    "ToolRegistry",
]
