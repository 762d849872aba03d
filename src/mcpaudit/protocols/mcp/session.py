"""Protocol sessions — client-side handshake state and server-side records.

A client session moves ``UNINITIALIZED -> INITIALIZED`` exactly once, on a
successful ``initialize`` round trip.  There is no re-negotiation and no
teardown.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from mcpaudit.protocols.errors import NotInitializedError, ProtocolError
from mcpaudit.protocols.mcp.models import PROTOCOL_VERSION, Capabilities, ClientInfo

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Return an opaque, globally unique session identifier."""
    return f"mcp_session_{uuid4().hex}"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class ClientSession:
    """Negotiated protocol state held by one :class:`MCPClient`."""

    def __init__(self, server_endpoint: str, session_id: str | None = None) -> None:
        self._session_id = session_id or new_session_id()
        self._server_endpoint = server_endpoint
        self._capabilities: Capabilities | None = None

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def server_endpoint(self) -> str:
        return self._server_endpoint

    @property
    def capabilities(self) -> Capabilities | None:
        return self._capabilities

    @property
    def state(self) -> SessionState:
        if self._capabilities is None:
            return SessionState.UNINITIALIZED
        return SessionState.INITIALIZED

    @property
    def initialized(self) -> bool:
        return self._capabilities is not None

    def mark_initialized(self, capabilities: Capabilities) -> None:
        if self._capabilities is not None:
            msg = f"Session {self._session_id} is already initialized"
            raise ProtocolError(msg)
        self._capabilities = capabilities
        logger.debug("Session %s initialized with %d tools", self._session_id, len(capabilities.tools))

    def require_initialized(self, operation: str) -> Capabilities:
        """Return the capabilities or raise :class:`NotInitializedError`."""
        if self._capabilities is None:
            raise NotInitializedError(operation)
        return self._capabilities


class SessionRecord(BaseModel):
    """What the server remembers about a client after ``initialize``."""

    model_config = {"populate_by_name": True}

    session_id: str = Field(alias="sessionId")
    client_info: ClientInfo | None = Field(default=None, alias="clientInfo")
    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    connected_at: datetime = Field(default_factory=lambda: datetime.now(UTC), alias="connectedAt")


class SessionStore:
    """Server-side map of session id to :class:`SessionRecord`."""

    def __init__(self) -> None:
        self._sessions: dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(
        self,
        session_id: str,
        *,
        client_info: ClientInfo | None = None,
        protocol_version: str = PROTOCOL_VERSION,
    ) -> SessionRecord:
        """Record a completed handshake; a repeated id replaces the old record."""
        record = SessionRecord(
            session_id=session_id,
            client_info=client_info,
            protocol_version=protocol_version,
        )
        self._sessions[session_id] = record
        return record

    def get(self, session_id: str) -> SessionRecord | None:
        return self._sessions.get(session_id)

    def is_initialized(self, session_id: str | None) -> bool:
        return session_id is not None and session_id in self._sessions

    def list_sessions(self) -> list[dict[str, Any]]:
        return [
            record.model_dump(by_alias=True, mode="json")
            for record in self._sessions.values()
        ]
