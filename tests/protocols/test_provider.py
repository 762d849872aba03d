"""Tests for the ToolCaller protocol and ToolProxy."""

from __future__ import annotations

from typing import Any

import pytest

from mcpaudit.protocols.mcp.models import ToolCallResult
from mcpaudit.protocols.provider import ToolCaller, ToolProxy


class RecordingCaller:
    def __init__(self, value: Any = None) -> None:
        self.calls: list[tuple[str, dict[str, Any] | None]] = []
        self.value = value

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolCallResult:
        self.calls.append((name, arguments))
        return ToolCallResult.from_value(self.value)


class TestToolCaller:
    def test_structural_match(self) -> None:
        assert isinstance(RecordingCaller(), ToolCaller)

    def test_non_match(self) -> None:
        assert not isinstance(object(), ToolCaller)


class TestToolProxy:
    async def test_attribute_call_maps_to_tool(self) -> None:
        caller = RecordingCaller({"message": "ok"})
        proxy = ToolProxy(caller)
        data = await proxy.add_reminder(time="10:00 AM", task="call the doctor")
        assert data == {"message": "ok"}
        assert caller.calls == [("add_reminder", {"time": "10:00 AM", "task": "call the doctor"})]

    async def test_none_arguments_dropped(self) -> None:
        caller = RecordingCaller("done")
        await ToolProxy(caller).search(query="x", limit=None)
        assert caller.calls == [("search", {"query": "x"})]

    async def test_text_result(self) -> None:
        assert await ToolProxy(RecordingCaller("plain text")).echo() == "plain text"

    def test_private_attributes_not_proxied(self) -> None:
        with pytest.raises(AttributeError):
            ToolProxy(RecordingCaller())._secret  # noqa: B018
