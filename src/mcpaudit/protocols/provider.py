"""ToolCaller protocol — anything that can run a named tool with arguments.

Both :class:`~mcpaudit.protocols.mcp.client.MCPClient` and
:class:`~mcpaudit.tracking.traced.TracedToolCaller` satisfy it, so callers
such as :class:`ToolProxy` work with or without tracing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mcpaudit.protocols.mcp.models import ToolCallResult


@runtime_checkable
class ToolCaller(Protocol):
    """Executes a tool by name and returns its content blocks."""

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolCallResult:
        ...


class ToolProxy:
    """Attribute-style access to remote tools.

    Usage::

        reminders = ToolProxy(client)
        await reminders.add_reminder(time="10:00 AM", task="call the doctor")
        await reminders.list_reminders()
    """

    def __init__(self, caller: ToolCaller) -> None:
        self._caller = caller

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        async def _invoke(**arguments: Any) -> Any:
            # Optional keyword arguments left as None are not sent.
            payload = {key: value for key, value in arguments.items() if value is not None}
            result = await self._caller.call_tool(name, payload)
            return result.data

        _invoke.__name__ = name
        return _invoke
