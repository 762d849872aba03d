"""Shared error types for the protocol layer."""

from __future__ import annotations

from typing import Any


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class ConnectionError(ProtocolError):
    """The request never reached the server or HTTP signalled non-success."""


class NotInitializedError(ProtocolError):
    """A session operation was attempted before ``initialize`` completed."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"MCP session not initialized; call initialize() before {operation}")


class InitializationFailedError(ProtocolError):
    """The ``initialize`` handshake failed; the session stays uninitialized."""


class DuplicateToolError(ProtocolError):
    """A tool with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool already registered: {name}")


class SchemaValidationError(ProtocolError):
    """Tool arguments do not match the tool's declared input schema."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"Invalid arguments for tool {name}" + (f": {detail}" if detail else ""))


class RemoteError(ProtocolError):
    """The server answered with an error envelope."""

    def __init__(self, code: int, message: str, data: Any = None, *, prefix: str = "") -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"{prefix}MCP Error {code}: {message}")


class ToolCallError(RemoteError):
    """A ``tools/call`` request was rejected by the server."""

    def __init__(self, name: str, code: int, message: str, data: Any = None) -> None:
        self.name = name
        super().__init__(code, message, data, prefix=f"Tool call failed: {name}: ")


class ToolError(Exception):
    """Raised by a tool handler when its message is safe to show the caller.

    Any other exception escaping a handler is reported to the client with a
    generic message only.
    """
