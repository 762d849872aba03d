"""TaskRun — scopes one top-level task onto an :class:`ExecutionTracker`."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from mcpaudit.tracking.models import ACTOR_AGENT, ACTOR_LLM, ACTOR_USER, ExecutionStep, StepKind
from mcpaudit.tracking.traced import TracedToolCaller
from mcpaudit.tracking.tracker import ExecutionTracker

if TYPE_CHECKING:
    from mcpaudit.protocols.mcp.client import MCPClient


class TaskRun:
    """Async context manager recording the start, narration and end of a task.

    Entering resets the tracker, so each run starts at step 1.  A run that
    raises records an ``error`` step and re-raises; a run that exits without
    calling :meth:`finish` still records ``run-end``.

    Usage::

        async with TaskRun("Add a reminder", tracker=ExecutionTracker()) as run:
            caller = run.tool_caller(client)
            result = await caller.call_tool("add_reminder", {...})
            run.finish(result.text)
        steps = run.steps
    """

    def __init__(
        self,
        query: str,
        *,
        tracker: ExecutionTracker | None = None,
        user: str = ACTOR_USER,
        agent: str = ACTOR_AGENT,
        llm: str = ACTOR_LLM,
    ) -> None:
        self.query = query
        self.tracker = tracker if tracker is not None else ExecutionTracker()
        self._user = user
        self._agent = agent
        self._llm = llm
        self._started = 0.0
        self._finished = False
        self.output: str | None = None

    async def __aenter__(self) -> TaskRun:
        self.tracker.reset()
        self._started = time.perf_counter()
        self.tracker.record(
            StepKind.RUN_START,
            f'Processing query: "{self.query}"',
            self._user,
            self._agent,
            {"query": self.query},
        )
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, _tb: object) -> None:
        if exc is not None:
            self.tracker.record(
                StepKind.ERROR,
                f"Agent execution failed: {exc}",
                self._agent,
                self._user,
                {"error": str(exc), "errorType": type(exc).__name__},
            )
            return
        if not self._finished:
            self.tracker.record(StepKind.RUN_END, "Query execution completed", self._agent, self._user)

    @property
    def steps(self) -> tuple[ExecutionStep, ...]:
        return self.tracker.snapshot()

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._started) * 1000, 3)

    def narrate(
        self,
        content: str,
        *,
        actor: str | None = None,
        target: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Record an informational step (decision-maker narration by default)."""
        return self.tracker.record(
            StepKind.INFORMATIONAL,
            content,
            actor or self._agent,
            target or self._llm,
            metadata,
        )

    def tool_caller(
        self,
        client: MCPClient,
        *,
        services: Mapping[str, str] | None = None,
    ) -> TracedToolCaller:
        """Return a caller that records tool calls into this run's tracker."""
        return TracedToolCaller(client, self.tracker, caller=self._agent, services=services)

    def finish(self, output: str) -> None:
        """Record the final answer and the end of the run."""
        if self._finished:
            return
        self.output = output
        self.tracker.record(
            StepKind.INFORMATIONAL,
            output,
            self._llm,
            self._user,
            {"totalDuration": self.elapsed_ms()},
        )
        self.tracker.record(StepKind.RUN_END, "Query execution completed", self._agent, self._user)
        self._finished = True
