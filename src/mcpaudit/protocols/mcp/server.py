"""MCPServer — envelope dispatch for ``initialize``, ``tools/list`` and ``tools/call``.

The server is transport-agnostic: :meth:`MCPServer.handle_request` takes a
decoded JSON payload plus the out-of-band session id and always returns a
response envelope.  Nothing raised inside dispatch escapes as an exception.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from mcpaudit import __version__
from mcpaudit.protocols.errors import SchemaValidationError, ToolError
from mcpaudit.protocols.mcp.models import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_INITIALIZE,
    METHOD_NOT_FOUND,
    METHOD_TOOLS_CALL,
    METHOD_TOOLS_LIST,
    PROTOCOL_VERSION,
    SESSION_NOT_INITIALIZED,
    TOOL_NOT_FOUND,
    Capabilities,
    FeatureFlags,
    InitializeParams,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
    ToolCallParams,
    ToolCallResult,
)
from mcpaudit.protocols.mcp.registry import ToolRegistry
from mcpaudit.protocols.mcp.session import SessionStore
from mcpaudit.utils.telemetry import (
    ATTR_ERROR_CODE,
    ATTR_METHOD,
    ATTR_REQUEST_ID,
    ATTR_SESSION_ID,
    ATTR_TOOL_NAME,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class MCPServer:
    """Handle the MCP handshake, tool discovery and tool execution.

    ``require_session`` controls whether ``tools/list`` and ``tools/call``
    need a session id that has completed ``initialize``.  When it is off the
    server is session-optional: sessions are recorded but never checked.

    Usage::

        registry = ToolRegistry()
        registry.register(descriptor, handler)
        server = MCPServer(registry)
        response = await server.handle_request(payload, session_id="abc")
    """

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        *,
        name: str = "mcpaudit",
        version: str = __version__,
        protocol_version: str = PROTOCOL_VERSION,
        require_session: bool = False,
        validate_arguments: bool = True,
        features: FeatureFlags | None = None,
    ) -> None:
        self._registry = registry if registry is not None else ToolRegistry()
        self._sessions = SessionStore()
        self._info = ServerInfo(name=name, version=version)
        self._protocol_version = protocol_version
        self._require_session = require_session
        self._validate_arguments = validate_arguments
        # Nothing optional is implemented yet, so nothing is advertised.
        self._features = features or FeatureFlags()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @property
    def protocol_version(self) -> str:
        return self._protocol_version

    def capabilities(self) -> Capabilities:
        """Capabilities advertisement with a live snapshot of the registry."""
        return Capabilities(
            tools=self._registry.list_tools(),
            version=self._protocol_version,
            features=self._features,
            server_info=self._info,
        )

    def stats(self) -> dict[str, Any]:
        return {
            "toolsRegistered": len(self._registry),
            "activeSessions": len(self._sessions),
            "protocolVersion": self._protocol_version,
        }

    async def handle_request(
        self,
        payload: Any,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """Process one request payload and return the response envelope."""
        if not isinstance(payload, dict):
            return JsonRpcResponse.failure(
                None, INVALID_REQUEST, "Invalid request: envelope must be a JSON object"
            ).to_wire()

        try:
            request = JsonRpcRequest.model_validate(payload)
        except ValidationError as exc:
            raw_id = payload.get("id")
            request_id = raw_id if isinstance(raw_id, (int, str)) else None
            return JsonRpcResponse.failure(
                request_id, INVALID_REQUEST, f"Invalid request: {exc.error_count()} validation error(s)"
            ).to_wire()

        with _tracer.start_as_current_span("mcp.server.dispatch") as span:
            span.set_attribute(ATTR_METHOD, request.method)
            span.set_attribute(ATTR_REQUEST_ID, str(request.id))
            if session_id:
                span.set_attribute(ATTR_SESSION_ID, session_id)

            response = await self._dispatch(request, session_id)

            if response.error is not None:
                span.set_attribute(ATTR_ERROR_CODE, response.error.code)
        return response.to_wire()

    async def _dispatch(self, request: JsonRpcRequest, session_id: str | None) -> JsonRpcResponse:
        method = request.method
        logger.debug("Dispatching %s (id=%s, session=%s)", method, request.id, session_id)

        if method == METHOD_INITIALIZE:
            return self._initialize(request, session_id)

        if method not in (METHOD_TOOLS_LIST, METHOD_TOOLS_CALL):
            return JsonRpcResponse.failure(
                request.id, METHOD_NOT_FOUND, f"Method not found: {method}"
            )

        if self._require_session and not self._sessions.is_initialized(session_id):
            return JsonRpcResponse.failure(
                request.id,
                SESSION_NOT_INITIALIZED,
                "Session not initialized; send 'initialize' first",
            )

        if method == METHOD_TOOLS_LIST:
            tools = [tool.to_wire() for tool in self._registry.list_tools()]
            return JsonRpcResponse.success(request.id, {"tools": tools})

        return await self._call_tool(request)

    def _initialize(self, request: JsonRpcRequest, session_id: str | None) -> JsonRpcResponse:
        try:
            params = InitializeParams.model_validate(request.params)
        except ValidationError as exc:
            return JsonRpcResponse.failure(
                request.id, INVALID_PARAMS, f"Invalid initialize params: {exc.error_count()} error(s)"
            )

        if params.protocol_version != self._protocol_version:
            logger.info(
                "Client requested protocol %s; answering with %s",
                params.protocol_version,
                self._protocol_version,
            )

        if session_id:
            self._sessions.open(
                session_id,
                client_info=params.client_info,
                protocol_version=params.protocol_version,
            )
            logger.info("MCP session %s initialized", session_id)
        else:
            logger.warning("initialize received without a session id; session not recorded")

        return JsonRpcResponse.success(request.id, self.capabilities().to_wire())

    async def _call_tool(self, request: JsonRpcRequest) -> JsonRpcResponse:
        try:
            params = ToolCallParams.model_validate(request.params)
        except ValidationError as exc:
            return JsonRpcResponse.failure(
                request.id, INVALID_PARAMS, f"Invalid tools/call params: {exc.error_count()} error(s)"
            )

        name = params.name
        if name not in self._registry:
            return JsonRpcResponse.failure(
                request.id, TOOL_NOT_FOUND, f"Tool not found: {name}", data={"tool": name}
            )

        if self._validate_arguments:
            try:
                self._registry.validate_arguments(name, params.arguments)
            except SchemaValidationError as exc:
                return JsonRpcResponse.failure(
                    request.id, INVALID_PARAMS, str(exc), data={"tool": name}
                )

        with _tracer.start_as_current_span("mcp.server.tool") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            try:
                value = await self._registry.invoke(name, params.arguments)
            except ToolError as exc:
                logger.warning("Tool %s reported an error: %s", name, exc)
                return JsonRpcResponse.failure(
                    request.id, INTERNAL_ERROR, str(exc), data={"tool": name}
                )
            except Exception:
                logger.exception("Tool %s failed", name)
                return JsonRpcResponse.failure(
                    request.id, INTERNAL_ERROR, f"Tool execution failed: {name}", data={"tool": name}
                )

        try:
            result = ToolCallResult.from_value(value)
        except (TypeError, ValueError):
            logger.exception("Tool %s returned an unserialisable result", name)
            return JsonRpcResponse.failure(
                request.id, INTERNAL_ERROR, f"Tool execution failed: {name}", data={"tool": name}
            )

        logger.debug("Tool %s completed", name)
        return JsonRpcResponse.success(request.id, result.model_dump())
