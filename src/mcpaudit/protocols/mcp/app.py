"""HTTP surface for :class:`MCPServer` — JSON envelopes over POST."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mcpaudit import __version__
from mcpaudit.protocols.mcp.models import PARSE_ERROR, SESSION_HEADER, VERSION_HEADER, JsonRpcResponse
from mcpaudit.protocols.mcp.registry import ToolRegistry
from mcpaudit.protocols.mcp.server import MCPServer
from mcpaudit.tools.builtin import register_builtin_tools

if TYPE_CHECKING:
    from mcpaudit.config import ServerSettings

logger = logging.getLogger(__name__)


def create_app(server: MCPServer, *, path: str = "/mcp") -> FastAPI:
    """Create the FastAPI app exposing *server* at *path*.

    Routes:

    * ``POST {path}`` — request envelope in, response envelope out.  Protocol
      errors are returned as error envelopes with HTTP 200.
    * ``GET {path}/sessions`` — sessions that completed ``initialize``.
    * ``GET {path}/stats`` — registry and session counters.
    * ``GET /health``
    """
    path = "/" + path.strip("/")
    app = FastAPI(title="mcpaudit MCP", version=__version__)
    app.state.mcp_server = server

    async def health() -> dict[str, str]:
        return {"status": "ok"}

    async def envelope_endpoint(request: Request) -> JSONResponse:
        session_id = request.headers.get(SESSION_HEADER)
        client_version = request.headers.get(VERSION_HEADER)
        if client_version and client_version != server.protocol_version:
            logger.debug(
                "Request header protocol %s differs from server %s",
                client_version,
                server.protocol_version,
            )

        try:
            payload: Any = json.loads(await request.body())
        except ValueError as exc:
            error = JsonRpcResponse.failure(None, PARSE_ERROR, f"Parse error: {exc}")
            return JSONResponse(error.to_wire())

        response = await server.handle_request(payload, session_id=session_id)
        return JSONResponse(response, headers={VERSION_HEADER: server.protocol_version})

    async def sessions() -> dict[str, Any]:
        listed = server.sessions.list_sessions()
        return {"activeSessions": len(listed), "sessions": listed}

    async def stats() -> dict[str, Any]:
        return server.stats()

    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route(path, envelope_endpoint, methods=["POST"])
    app.add_api_route(f"{path}/sessions", sessions, methods=["GET"])
    app.add_api_route(f"{path}/stats", stats, methods=["GET"])

    return app


def run_server(settings: ServerSettings, server: MCPServer) -> None:
    """Serve *server* over HTTP with uvicorn until interrupted."""
    import uvicorn

    app = create_app(server, path=settings.path)
    logger.info(
        "Serving MCP on http://%s:%d%s (%d tools)",
        settings.host,
        settings.port,
        settings.path,
        len(server.registry),
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


def build_server(settings: ServerSettings, registry: ToolRegistry | None = None) -> MCPServer:
    """Create an :class:`MCPServer` from *settings*, with the demo tools if enabled."""
    registry = registry if registry is not None else ToolRegistry()
    if settings.builtin_tools:
        register_builtin_tools(registry)
    return MCPServer(
        registry,
        name=settings.name,
        protocol_version=settings.protocol_version,
        require_session=settings.require_session,
        validate_arguments=settings.validate_arguments,
    )
