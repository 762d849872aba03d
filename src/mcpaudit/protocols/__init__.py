"""Protocol layer — MCP envelope, registry, session, server and client."""

from mcpaudit.protocols.errors import (
    ConnectionError,
    DuplicateToolError,
    InitializationFailedError,
    NotInitializedError,
    ProtocolError,
    RemoteError,
    SchemaValidationError,
    ToolCallError,
    ToolError,
)
from mcpaudit.protocols.provider import ToolCaller, ToolProxy

__all__ = [
    "ConnectionError",
    "DuplicateToolError",
    "InitializationFailedError",
    "NotInitializedError",
    "ProtocolError",
    "RemoteError",
    "SchemaValidationError",
    "ToolCallError",
    "ToolCaller",
    "ToolError",
    "ToolProxy",
]
