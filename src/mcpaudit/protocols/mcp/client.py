"""MCPClient — handshake, tool discovery and tool calls against an MCP server.

Implements ``initialize``, ``tools/list`` and ``tools/call`` over an
:class:`MCPTransport`.  Calls are issued one at a time; each carries a fresh
correlation id that the response must echo.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from mcpaudit import __version__
from mcpaudit.protocols.errors import (
    InitializationFailedError,
    ProtocolError,
    RemoteError,
    ToolCallError,
)
from mcpaudit.protocols.mcp.models import (
    METHOD_INITIALIZE,
    METHOD_TOOLS_CALL,
    METHOD_TOOLS_LIST,
    PROTOCOL_VERSION,
    SESSION_HEADER,
    VERSION_HEADER,
    Capabilities,
    ClientInfo,
    InitializeParams,
    JsonRpcRequest,
    JsonRpcResponse,
    ToolCallResult,
    ToolDescriptor,
    ToolListResult,
)
from mcpaudit.protocols.mcp.session import ClientSession
from mcpaudit.protocols.mcp.transport import HttpTransport, MCPTransport
from mcpaudit.utils.telemetry import (
    ATTR_METHOD,
    ATTR_REQUEST_ID,
    ATTR_SERVER_ENDPOINT,
    ATTR_SESSION_ID,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class MCPClient:
    """Async context manager that talks to one MCP server.

    Satisfies the :class:`~mcpaudit.protocols.provider.ToolCaller` protocol.

    Usage::

        async with MCPClient("http://localhost:3000/mcp") as client:
            await client.initialize()
            tools = await client.discover_tools()
            result = await client.call_tool("echo", {"text": "hi"})
    """

    def __init__(
        self,
        server_url: str,
        *,
        transport: MCPTransport | None = None,
        client_name: str = "mcpaudit",
        client_version: str = __version__,
        protocol_version: str = PROTOCOL_VERSION,
        timeout: float | None = None,
    ) -> None:
        self._session = ClientSession(server_endpoint=server_url)
        self._transport = transport or HttpTransport(server_url, timeout=timeout)
        self._client_info = ClientInfo(name=client_name, version=client_version)
        self._protocol_version = protocol_version
        self._connected = False
        self._next_id = 1

    async def __aenter__(self) -> MCPClient:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @property
    def session(self) -> ClientSession:
        return self._session

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def capabilities(self) -> Capabilities | None:
        return self._session.capabilities

    async def connect(self) -> None:
        """Open the underlying transport."""
        if self._connected:
            return
        await self._transport.connect()
        self._connected = True

    async def close(self) -> None:
        """Close the underlying transport."""
        if self._connected:
            await self._transport.close()
            self._connected = False

    async def initialize(self) -> Capabilities:
        """Perform the handshake and store the negotiated capabilities.

        Any failure (transport, error envelope, malformed result) is raised as
        :class:`InitializationFailedError` and leaves the session
        uninitialized, so a fresh attempt is possible.
        """
        if self._session.capabilities is not None:
            return self._session.capabilities

        params = InitializeParams(
            protocol_version=self._protocol_version,
            client_info=self._client_info,
        ).model_dump(by_alias=True, exclude_none=True)

        try:
            response = await self.send(self._build_request(METHOD_INITIALIZE, params))
            if response.error is not None:
                raise RemoteError(response.error.code, response.error.message, response.error.data)
            capabilities = Capabilities.model_validate(response.result)
        except (ProtocolError, ValidationError) as exc:
            logger.warning("MCP initialization with %s failed: %s", self._session.server_endpoint, exc)
            raise InitializationFailedError(f"Failed to establish MCP connection: {exc}") from None

        self._session.mark_initialized(capabilities)
        logger.info(
            "MCP session %s established; %d tools: %s",
            self.session_id,
            len(capabilities.tools),
            ", ".join(capabilities.tool_names),
        )
        return capabilities

    async def discover_tools(self) -> list[ToolDescriptor]:
        """Fetch the server's current tool list (never cached)."""
        self._session.require_initialized("discover_tools")
        response = await self.send(self._build_request(METHOD_TOOLS_LIST))
        if response.error is not None:
            raise RemoteError(response.error.code, response.error.message, response.error.data)
        try:
            return ToolListResult.model_validate(response.result).tools
        except ValidationError as exc:
            msg = f"Malformed tools/list result: {exc.error_count()} error(s)"
            raise ProtocolError(msg) from exc

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolCallResult:
        """Call a tool and return its content blocks.

        Raises:
            NotInitializedError: Before :meth:`initialize` succeeded (no I/O).
            ToolCallError: The server answered with an error envelope.
            ConnectionError: The request never completed.
        """
        request = self.prepare_call(name, arguments)
        response = await self.send(request)
        return self.unwrap_call(name, response)

    def prepare_call(self, name: str, arguments: dict[str, Any] | None = None) -> JsonRpcRequest:
        """Build the ``tools/call`` envelope with a fresh correlation id."""
        self._session.require_initialized("call_tool")
        return self._build_request(METHOD_TOOLS_CALL, {"name": name, "arguments": arguments or {}})

    @staticmethod
    def unwrap_call(name: str, response: JsonRpcResponse) -> ToolCallResult:
        """Turn a ``tools/call`` response into a result or a :class:`ToolCallError`."""
        if response.error is not None:
            raise ToolCallError(name, response.error.code, response.error.message, response.error.data)
        try:
            return ToolCallResult.model_validate(response.result)
        except ValidationError as exc:
            msg = f"Malformed tools/call result for {name}: {exc.error_count()} error(s)"
            raise ProtocolError(msg) from exc

    async def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Send one envelope and return the response correlated to it."""
        if not self._connected:
            await self.connect()

        with _tracer.start_as_current_span("mcp.client.request") as span:
            span.set_attribute(ATTR_METHOD, request.method)
            span.set_attribute(ATTR_REQUEST_ID, str(request.id))
            span.set_attribute(ATTR_SESSION_ID, self.session_id)
            span.set_attribute(ATTR_SERVER_ENDPOINT, self._session.server_endpoint)

            logger.debug("-> %s id=%s", request.method, request.id)
            raw = await self._transport.send(request.to_wire(), self._headers())

        try:
            response = JsonRpcResponse.model_validate(raw)
        except ValidationError as exc:
            msg = f"Malformed response envelope for {request.method}: {exc.error_count()} error(s)"
            raise ProtocolError(msg) from exc

        if response.id != request.id:
            msg = f"Response id {response.id!r} does not match request id {request.id!r}"
            raise ProtocolError(msg)
        return response

    def session_info(self) -> dict[str, Any]:
        capabilities = self._session.capabilities
        return {
            "sessionId": self.session_id,
            "serverEndpoint": self._session.server_endpoint,
            "initialized": capabilities is not None,
            "availableTools": len(capabilities.tools) if capabilities else 0,
        }

    def _build_request(self, method: str, params: dict[str, Any] | None = None) -> JsonRpcRequest:
        request_id = self._next_id
        self._next_id += 1
        return JsonRpcRequest(
            protocol_version=self._protocol_version,
            id=request_id,
            method=method,
            params=params or {},
        )

    def _headers(self) -> dict[str, str]:
        return {
            SESSION_HEADER: self.session_id,
            VERSION_HEADER: self._protocol_version,
        }
