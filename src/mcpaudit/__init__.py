"""mcpaudit — tool-invocation protocol layer with an execution-audit trace."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from mcpaudit.protocols.mcp.client import MCPClient as MCPClient
    from mcpaudit.protocols.mcp.server import MCPServer as MCPServer
    from mcpaudit.tracking.tracker import ExecutionTracker as ExecutionTracker

_LAZY_EXPORTS = {
    "MCPClient": "mcpaudit.protocols.mcp.client",
    "MCPServer": "mcpaudit.protocols.mcp.server",
    "ExecutionTracker": "mcpaudit.tracking.tracker",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'mcpaudit' has no attribute {name!r}")
