"""Tests for MCP envelope and payload models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from mcpaudit.protocols.mcp.models import (
    PROTOCOL_VERSION,
    TOOL_NOT_FOUND,
    Capabilities,
    FeatureFlags,
    FeatureSupport,
    JsonRpcRequest,
    JsonRpcResponse,
    ToolCallResult,
    ToolDescriptor,
)


class TestJsonRpcRequest:
    def test_wire_format_uses_aliases(self) -> None:
        request = JsonRpcRequest(id=7, method="tools/list")
        wire = request.to_wire()
        assert wire == {
            "jsonrpc": "2.0",
            "protocolVersion": PROTOCOL_VERSION,
            "id": 7,
            "method": "tools/list",
            "params": {},
        }

    def test_parse_from_wire(self) -> None:
        request = JsonRpcRequest.model_validate(
            {"jsonrpc": "2.0", "protocolVersion": "2024-11-05", "id": "abc", "method": "initialize"}
        )
        assert request.id == "abc"
        assert request.protocol_version == "2024-11-05"

    def test_unknown_method_still_parses(self) -> None:
        request = JsonRpcRequest.model_validate({"id": 1, "method": "resources/list"})
        assert request.method == "resources/list"

    def test_missing_method_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcRequest.model_validate({"id": 1})

    def test_missing_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcRequest.model_validate({"method": "tools/list"})


class TestJsonRpcResponse:
    def test_success_omits_error(self) -> None:
        wire = JsonRpcResponse.success(3, {"tools": []}).to_wire()
        assert wire == {"jsonrpc": "2.0", "id": 3, "result": {"tools": []}}

    def test_failure_omits_result(self) -> None:
        wire = JsonRpcResponse.failure(3, TOOL_NOT_FOUND, "Tool not found: x").to_wire()
        assert "result" not in wire
        assert wire["error"] == {"code": -32001, "message": "Tool not found: x"}

    def test_failure_keeps_data(self) -> None:
        wire = JsonRpcResponse.failure(1, TOOL_NOT_FOUND, "nope", data={"tool": "x"}).to_wire()
        assert wire["error"]["data"] == {"tool": "x"}

    def test_both_result_and_error_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcResponse.model_validate(
                {"id": 1, "result": {}, "error": {"code": -32603, "message": "x"}}
            )

    def test_neither_result_nor_error_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcResponse.model_validate({"id": 1})


class TestToolDescriptor:
    def test_default_schema_is_empty_object(self) -> None:
        descriptor = ToolDescriptor(name="ping")
        assert descriptor.input_schema == {"type": "object", "properties": {}}
        assert descriptor.required == []

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ToolDescriptor(name="")

    def test_wire_uses_input_schema_alias(self) -> None:
        descriptor = ToolDescriptor(
            name="echo",
            input_schema={"type": "object", "required": ["text"]},
        )
        wire = descriptor.to_wire()
        assert wire["inputSchema"]["required"] == ["text"]
        assert descriptor.required == ["text"]

    def test_frozen(self) -> None:
        descriptor = ToolDescriptor(name="echo")
        with pytest.raises(ValidationError):
            descriptor.name = "other"  # type: ignore[misc]


class TestFeatureFlags:
    def test_defaults_unsupported(self) -> None:
        flags = FeatureFlags()
        assert flags.streaming is FeatureSupport.UNSUPPORTED
        assert not flags.is_implemented("streaming")

    def test_legacy_true_means_advertised_only(self) -> None:
        flags = FeatureFlags.model_validate({"streaming": True, "progress": False})
        assert flags.streaming is FeatureSupport.ADVERTISED
        assert flags.progress is FeatureSupport.UNSUPPORTED
        assert not flags.is_implemented("streaming")

    def test_implemented(self) -> None:
        flags = FeatureFlags(cancellation=FeatureSupport.IMPLEMENTED)
        assert flags.is_implemented("cancellation")


class TestCapabilities:
    def test_wire_round_trip(self) -> None:
        caps = Capabilities(tools=[ToolDescriptor(name="echo")])
        parsed = Capabilities.model_validate(caps.to_wire())
        assert parsed.tool_names == ["echo"]
        assert parsed.version == PROTOCOL_VERSION

    def test_wire_omits_missing_server_info(self) -> None:
        assert "serverInfo" not in Capabilities().to_wire()


class TestToolCallResult:
    def test_string_value_kept_verbatim(self) -> None:
        result = ToolCallResult.from_value("hello")
        assert result.text == "hello"
        assert result.data == "hello"

    def test_structured_value_serialised(self) -> None:
        result = ToolCallResult.from_value({"a": 1})
        assert result.content[0].type == "text"
        assert result.data == {"a": 1}

    def test_none_value(self) -> None:
        result = ToolCallResult.from_value(None)
        assert result.text == "null"
        assert result.data is None

    def test_multiple_blocks_joined(self) -> None:
        result = ToolCallResult.model_validate(
            {"content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}
        )
        assert result.text == "a\nb"
