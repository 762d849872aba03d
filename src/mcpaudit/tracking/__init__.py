"""Execution tracking — per-run, causally ordered audit trace."""

from mcpaudit.tracking.models import ExecutionStep, ExecutionTrace, StepKind
from mcpaudit.tracking.run import TaskRun
from mcpaudit.tracking.traced import TracedToolCaller
from mcpaudit.tracking.tracker import ExecutionTracker

__all__ = [
    "ExecutionStep",
    "ExecutionTrace",
    "ExecutionTracker",
    "StepKind",
    "TaskRun",
    "TracedToolCaller",
]
