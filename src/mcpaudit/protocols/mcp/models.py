"""MCP models — JSON-RPC envelopes, tool descriptors and capabilities.

Implements the message format used for the handshake (``initialize``),
tool discovery (``tools/list``) and execution (``tools/call``).
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"

METHOD_INITIALIZE = "initialize"
METHOD_TOOLS_LIST = "tools/list"
METHOD_TOOLS_CALL = "tools/call"
METHODS = frozenset({METHOD_INITIALIZE, METHOD_TOOLS_LIST, METHOD_TOOLS_CALL})

# Out-of-band headers sent with every request
SESSION_HEADER = "MCP-Session-ID"
VERSION_HEADER = "MCP-Protocol-Version"

# ---------------------------------------------------------------------------
# Reserved error codes
# ---------------------------------------------------------------------------

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
TOOL_NOT_FOUND = -32001
SESSION_NOT_INITIALIZED = -32002

RequestId = int | str

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A request envelope.

    ``method`` is kept as a plain string so an unknown method can be answered
    with ``METHOD_NOT_FOUND`` instead of failing envelope validation.
    """

    model_config = {"populate_by_name": True}

    jsonrpc: str = JSONRPC_VERSION
    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    id: RequestId
    method: str
    params: dict[str, Any] = {}

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A response envelope carrying exactly one of ``result`` or ``error``."""

    jsonrpc: str = JSONRPC_VERSION
    id: RequestId | None = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> JsonRpcResponse:
        if (self.result is None) == (self.error is None):
            msg = "response must carry exactly one of 'result' or 'error'"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, request_id: RequestId | None, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls,
        request_id: RequestId | None,
        code: int,
        message: str,
        data: Any = None,
    ) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message, data=data))

    def to_wire(self) -> dict[str, Any]:
        """Serialise without the absent half of the result/error pair."""
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            wire["error"] = self.error.model_dump(exclude_none=True)
        else:
            wire["result"] = self.result
        return wire


# ---------------------------------------------------------------------------
# Tool descriptors
# ---------------------------------------------------------------------------


def _empty_object_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


class ToolDescriptor(BaseModel):
    """A tool definition as registered on the server and returned by ``tools/list``."""

    model_config = {"populate_by_name": True, "frozen": True}

    name: str = Field(min_length=1)
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=_empty_object_schema, alias="inputSchema")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @property
    def required(self) -> list[str]:
        return list(self.input_schema.get("required", []))


# ---------------------------------------------------------------------------
# Handshake payloads
# ---------------------------------------------------------------------------


class FeatureSupport(str, Enum):
    """How far an optional protocol behaviour is actually backed."""

    UNSUPPORTED = "unsupported"
    ADVERTISED = "advertised"
    IMPLEMENTED = "implemented"


class FeatureFlags(BaseModel):
    """Optional behaviours a server declares during the handshake.

    Older servers send plain booleans; ``true`` only means the flag was
    advertised, so it maps to :attr:`FeatureSupport.ADVERTISED`.
    """

    streaming: FeatureSupport = FeatureSupport.UNSUPPORTED
    cancellation: FeatureSupport = FeatureSupport.UNSUPPORTED
    progress: FeatureSupport = FeatureSupport.UNSUPPORTED

    @field_validator("streaming", "cancellation", "progress", mode="before")
    @classmethod
    def _coerce_legacy_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return FeatureSupport.ADVERTISED if value else FeatureSupport.UNSUPPORTED
        return value

    def is_implemented(self, feature: str) -> bool:
        return getattr(self, feature) is FeatureSupport.IMPLEMENTED


class ClientInfo(BaseModel):
    """Identity a client presents in ``initialize``."""

    name: str
    version: str = ""


class ServerInfo(BaseModel):
    """Identity a server presents in its capabilities."""

    name: str
    version: str = ""


class InitializeParams(BaseModel):
    """Params of an ``initialize`` request."""

    model_config = {"populate_by_name": True}

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = {}
    client_info: ClientInfo | None = Field(default=None, alias="clientInfo")


class Capabilities(BaseModel):
    """The negotiated outcome of a successful handshake."""

    model_config = {"populate_by_name": True}

    tools: list[ToolDescriptor] = []
    version: str = PROTOCOL_VERSION
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    server_info: ServerInfo | None = Field(default=None, alias="serverInfo")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

    @property
    def tool_names(self) -> list[str]:
        return [tool.name for tool in self.tools]


# ---------------------------------------------------------------------------
# tools/list and tools/call payloads
# ---------------------------------------------------------------------------


class ToolListResult(BaseModel):
    """Result of ``tools/list``."""

    tools: list[ToolDescriptor] = []


class ToolCallParams(BaseModel):
    """Params of a ``tools/call`` request."""

    name: str
    arguments: dict[str, Any] = {}


class TextContent(BaseModel):
    """A single text content block."""

    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    """Result of ``tools/call``: every tool output travels as text blocks."""

    content: list[TextContent] = []

    @classmethod
    def from_value(cls, value: Any) -> ToolCallResult:
        """Wrap a handler's return value in the content-block convention."""
        text = value if isinstance(value, str) else json.dumps(value, default=str)
        return cls(content=[TextContent(text=text)])

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)

    @property
    def data(self) -> Any:
        """Decode the text payload as JSON, falling back to the raw text."""
        text = self.text
        try:
            return json.loads(text)
        except ValueError:
            return text
