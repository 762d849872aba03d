"""End-to-end: traced tool calls through the HTTP app, the client and the tracker."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest

from mcpaudit.config import ServerSettings
from mcpaudit.protocols.errors import NotInitializedError, ToolCallError
from mcpaudit.protocols.mcp.app import build_server, create_app
from mcpaudit.protocols.mcp.client import MCPClient
from mcpaudit.protocols.mcp.models import TOOL_NOT_FOUND
from mcpaudit.protocols.mcp.registry import ToolRegistry
from mcpaudit.protocols.mcp.server import MCPServer
from mcpaudit.protocols.mcp.transport import HttpTransport
from mcpaudit.protocols.provider import ToolProxy
from mcpaudit.tools.builtin import ECHO, echo
from mcpaudit.tracking.models import StepKind
from mcpaudit.tracking.run import TaskRun
from mcpaudit.tracking.traced import TracedToolCaller
from mcpaudit.tracking.tracker import ExecutionTracker

URL = "http://test/mcp"


@pytest.fixture
def server() -> MCPServer:
    return build_server(ServerSettings())


@pytest.fixture
async def client(server: MCPServer) -> AsyncIterator[MCPClient]:
    app = create_app(server)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
        async with MCPClient(URL, transport=HttpTransport(URL, client=http)) as mcp:
            yield mcp


class TestEchoScenario:
    async def test_echo_records_six_steps(self) -> None:
        registry = ToolRegistry()
        registry.register(ECHO, echo)
        app = create_app(MCPServer(registry))
        tracker = ExecutionTracker()

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
            async with MCPClient(URL, transport=HttpTransport(URL, client=http)) as client:
                await client.initialize()
                tools = await client.discover_tools()
                caller = TracedToolCaller(client, tracker)
                result = await caller.call_tool("echo", {"text": "hi"})

        assert [t.name for t in tools] == ["echo"]
        assert result.content[0].type == "text"
        assert result.data == {"text": "hi"}
        steps = tracker.snapshot()
        assert len(steps) == 6
        assert steps[0].kind is StepKind.TOOL_CALL_ISSUED
        assert steps[0].duration_ms is not None
        assert steps[-1].kind is StepKind.TOOL_CALL_COMPLETED
        assert [s.id for s in steps] == [1, 2, 3, 4, 5, 6]
        assert steps[4].kind is not StepKind.ERROR


class TestMissingToolScenario:
    async def test_error_code_and_error_steps(self, client: MCPClient) -> None:
        await client.initialize()
        async with TaskRun("call a tool that does not exist") as run:
            caller = run.tool_caller(client)
            with pytest.raises(ToolCallError) as exc_info:
                await caller.call_tool("nonexistent", {})
            run.finish("Sorry, that tool is unavailable.")

        assert exc_info.value.code == TOOL_NOT_FOUND
        kinds = [s.kind for s in run.steps]
        assert kinds.count(StepKind.ERROR) == 2
        assert StepKind.TOOL_CALL_COMPLETED not in kinds
        assert kinds[-1] is StepKind.RUN_END
        errors = run.tracker.to_trace().errors()
        assert [(e.actor, e.target) for e in errors] == [("MCPServer", "MCPClient"), ("MCPClient", "Agent")]


class TestReminderScenario:
    async def test_add_then_list_through_proxy(self, client: MCPClient, server: MCPServer) -> None:
        await client.initialize()
        async with TaskRun("Remind me to call the doctor at 10 AM") as run:
            reminders = ToolProxy(run.tool_caller(client, services={"add_reminder": "ReminderService"}))
            added = await reminders.add_reminder(time="10:00 AM", task="call the doctor")
            listed = await reminders.list_reminders()
            run.finish(added["message"])

        assert added["message"] == "Reminder added: call the doctor at 10:00 AM"
        assert [r["task"] for r in listed] == ["call the doctor"]
        trace = run.tracker.to_trace()
        assert "ReminderService" in trace.participants()
        # start + 2 * 6 hops + answer + end
        assert len(trace.steps) == 15
        assert server.sessions.is_initialized(client.session_id)

    async def test_schema_rejection_surfaces_invalid_params(self, client: MCPClient) -> None:
        await client.initialize()
        with pytest.raises(ToolCallError) as exc_info:
            await client.call_tool("add_reminder", {"time": "10:00 AM"})
        assert exc_info.value.code == -32602


class TestStrictSessions:
    async def test_uninitialized_session_rejected_by_server(self) -> None:
        server = build_server(ServerSettings(require_session=True))
        app = create_app(server)
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
            resp = await http.post(
                "/mcp",
                json={"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}},
                headers={"MCP-Session-ID": "skipped-handshake"},
            )
        assert resp.json()["error"]["code"] == -32002

    async def test_client_refuses_before_handshake(self, client: MCPClient) -> None:
        with pytest.raises(NotInitializedError):
            await client.discover_tools()
