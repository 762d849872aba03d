"""ExecutionTracker — ordered, causally labelled steps for one run.

A tracker belongs to a single run.  Concurrent runs each get their own
tracker; :meth:`ExecutionTracker.reset` starts the next run on the same one.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from mcpaudit.tracking.models import ExecutionStep, ExecutionTrace, StepKind

logger = logging.getLogger(__name__)


class ExecutionTracker:
    """Records :class:`ExecutionStep` objects in issuance order.

    Usage::

        tracker = ExecutionTracker()
        step_id = tracker.record(StepKind.TOOL_CALL_ISSUED, "echo()", "Agent", "MCPClient")
        tracker.update_duration(step_id, 12.5)
        steps = tracker.snapshot()
    """

    def __init__(self) -> None:
        self._steps: list[ExecutionStep] = []
        self._index: dict[int, int] = {}
        self._counter = 0

    def __len__(self) -> int:
        return len(self._steps)

    def record(
        self,
        kind: StepKind,
        content: str,
        actor: str,
        target: str,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Append a step and return its id (1-based within the run)."""
        self._counter += 1
        step = ExecutionStep(
            id=self._counter,
            kind=kind,
            actor=actor,
            target=target,
            content=content,
            metadata=copy.deepcopy(metadata) if metadata else {},
        )
        self._index[step.id] = len(self._steps)
        self._steps.append(step)
        logger.debug("step %d [%s] %s -> %s", step.id, kind.value, actor, target)
        return step.id

    def update_duration(self, step_id: int, duration_ms: float) -> None:
        """Set the duration of *step_id*; unknown ids are ignored."""
        position = self._index.get(step_id)
        if position is None:
            return
        step = self._steps[position]
        self._steps[position] = step.model_copy(update={"duration_ms": duration_ms})

    def snapshot(self) -> tuple[ExecutionStep, ...]:
        """Return an immutable copy of the steps recorded so far."""
        return tuple(step.model_copy(deep=True) for step in self._steps)

    def to_trace(self) -> ExecutionTrace:
        return ExecutionTrace(steps=list(self.snapshot()))

    def reset(self) -> None:
        """Drop all steps and restart numbering at 1."""
        self._steps.clear()
        self._index.clear()
        self._counter = 0
