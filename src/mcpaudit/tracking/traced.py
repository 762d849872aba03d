"""TracedToolCaller — records every tool call as a six-step hop-pair.

For a successful call the tracker receives, in order:

1. caller decides to call the tool (caller -> client)
2. request envelope leaves the client (client -> server)
3. server routes to the handler (server -> handler)
4. handler result (handler -> server)
5. response envelope (server -> client)
6. result delivered (client -> caller)

On failure an ``error`` step is recorded where the failure happened and a
second one where it is reported back to the caller; no success steps follow.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from mcpaudit.protocols.errors import ConnectionError, NotInitializedError, ProtocolError
from mcpaudit.tracking.models import (
    ACTOR_AGENT,
    ACTOR_CLIENT,
    ACTOR_HANDLER,
    ACTOR_SERVER,
    StepKind,
)

if TYPE_CHECKING:
    from mcpaudit.protocols.mcp.client import MCPClient
    from mcpaudit.protocols.mcp.models import ToolCallResult
    from mcpaudit.tracking.tracker import ExecutionTracker


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.CancelledError):
        return "request cancelled"
    return str(exc) or type(exc).__name__


class TracedToolCaller:
    """Wraps :meth:`MCPClient.call_tool` with six-step trace recording.

    Satisfies the :class:`~mcpaudit.protocols.provider.ToolCaller` protocol.

    *services* maps a tool name to the participant name of the service that
    handles it (e.g. ``{"add_reminder": "ReminderService"}``); unmapped tools
    use *default_service*.
    """

    def __init__(
        self,
        client: MCPClient,
        tracker: ExecutionTracker,
        *,
        caller: str = ACTOR_AGENT,
        client_actor: str = ACTOR_CLIENT,
        server_actor: str = ACTOR_SERVER,
        services: Mapping[str, str] | None = None,
        default_service: str = ACTOR_HANDLER,
    ) -> None:
        self._client = client
        self._tracker = tracker
        self._caller = caller
        self._client_actor = client_actor
        self._server_actor = server_actor
        self._services = dict(services or {})
        self._default_service = default_service

    @property
    def tracker(self) -> ExecutionTracker:
        return self._tracker

    def service_for(self, name: str) -> str:
        return self._services.get(name, self._default_service)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolCallResult:
        """Call *name* through the client, recording each hop."""
        arguments = arguments or {}
        tracker = self._tracker
        service = self.service_for(name)
        started = time.perf_counter()

        decision_id = tracker.record(
            StepKind.TOOL_CALL_ISSUED,
            f"{self._caller} selects {name} tool",
            self._caller,
            self._client_actor,
            {"toolName": name, "parameters": arguments},
        )

        try:
            request = self._client.prepare_call(name, arguments)
        except NotInitializedError as exc:
            tracker.update_duration(decision_id, _elapsed_ms(started))
            tracker.record(
                StepKind.ERROR,
                f"MCP Error: {exc}",
                self._client_actor,
                self._caller,
                {"error": str(exc), "toolName": name},
            )
            raise

        tracker.record(
            StepKind.TOOL_CALL_ISSUED,
            f"MCP JSON-RPC Request: {request.method}",
            self._client_actor,
            self._server_actor,
            {"request": request.to_wire()},
        )
        tracker.record(
            StepKind.TOOL_CALL_ISSUED,
            f"MCP Server routes to {service}",
            self._server_actor,
            service,
            {"toolName": name, "mcpRequestId": request.id},
        )

        try:
            response = await self._client.send(request)
            result = self._client.unwrap_call(name, response)
        except BaseException as exc:
            duration = _elapsed_ms(started)
            tracker.update_duration(decision_id, duration)
            detail = _describe(exc)
            # Server-reported errors fail on the response hop; transport
            # failures, timeouts and cancellation fail on the request hop.
            if isinstance(exc, ProtocolError) and not isinstance(exc, ConnectionError):
                actor, target = self._server_actor, self._client_actor
            else:
                actor, target = self._client_actor, self._server_actor
            tracker.record(
                StepKind.ERROR,
                f"MCP Error: {detail}",
                actor,
                target,
                {
                    "error": detail,
                    "errorType": type(exc).__name__,
                    "code": getattr(exc, "code", None),
                    "mcpRequestId": request.id,
                    "totalDuration": duration,
                },
            )
            tracker.record(
                StepKind.ERROR,
                f"Tool {name} failed",
                self._client_actor,
                self._caller,
                {"error": detail, "toolName": name},
            )
            raise

        duration = _elapsed_ms(started)
        tracker.record(
            StepKind.TOOL_CALL_COMPLETED,
            f"{service} completed {name}",
            service,
            self._server_actor,
            {"data": result.data},
        )
        tracker.record(
            StepKind.TOOL_CALL_COMPLETED,
            "MCP JSON-RPC Response",
            self._server_actor,
            self._client_actor,
            {"response": response.to_wire()},
        )
        tracker.record(
            StepKind.TOOL_CALL_COMPLETED,
            result.text,
            self._client_actor,
            self._caller,
            {"toolName": name, "totalDuration": duration},
        )
        tracker.update_duration(decision_id, duration)
        return result
