"""Execution trace models — the steps one tracked run is made of."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# Logical participants used as actor/target of a step
ACTOR_USER = "User"
ACTOR_AGENT = "Agent"
ACTOR_LLM = "LLM"
ACTOR_CLIENT = "MCPClient"
ACTOR_SERVER = "MCPServer"
ACTOR_HANDLER = "ToolHandler"


class StepKind(str, Enum):
    RUN_START = "run-start"
    TOOL_CALL_ISSUED = "tool-call-issued"
    TOOL_CALL_COMPLETED = "tool-call-completed"
    INFORMATIONAL = "informational"
    RUN_END = "run-end"
    ERROR = "error"


class ExecutionStep(BaseModel):
    """One recorded step: *actor* told *target* something."""

    model_config = {"populate_by_name": True, "frozen": True}

    id: int
    kind: StepKind
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    actor: str
    target: str
    content: str
    duration_ms: float | None = Field(default=None, alias="durationMs")
    metadata: dict[str, Any] = {}


class ExecutionTrace(BaseModel):
    """A complete run, as exported to and loaded from JSON."""

    steps: list[ExecutionStep] = []

    def dump(self) -> bytes:
        return self.model_dump_json(by_alias=True, indent=2).encode()

    @classmethod
    def load(cls, data: bytes | str) -> ExecutionTrace:
        return cls.model_validate_json(data)

    def participants(self) -> list[str]:
        """Actors and targets in order of first appearance."""
        seen: dict[str, None] = {}
        for step in self.steps:
            seen.setdefault(step.actor)
            seen.setdefault(step.target)
        return list(seen)

    def errors(self) -> list[ExecutionStep]:
        return [step for step in self.steps if step.kind is StepKind.ERROR]
