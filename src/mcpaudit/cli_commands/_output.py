"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from mcpaudit.protocols.mcp.models import ToolCallResult, ToolDescriptor
    from mcpaudit.tracking.models import ExecutionTrace

console = Console()

_KIND_STYLES = {
    "run-start": "bold",
    "tool-call-issued": "cyan",
    "tool-call-completed": "green",
    "informational": "dim",
    "run-end": "bold",
    "error": "bold red",
}


def print_tools_table(tools: list[ToolDescriptor]) -> None:
    """Pretty-print tool descriptors as a table."""
    table = Table(title="Discovered Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Required")

    for tool in tools:
        table.add_row(
            tool.name,
            _truncate(tool.description),
            ", ".join(tool.required) or "-",
        )

    console.print(table)


def print_result(result: ToolCallResult, *, as_json: bool = False) -> None:
    """Print a tool result, decoding JSON payloads when possible."""
    data: Any = result.data
    if as_json or not isinstance(data, str):
        console.print_json(json.dumps(data, default=str))
    else:
        console.print(data)


def print_trace(trace: ExecutionTrace, *, as_json: bool = False, errors_only: bool = False) -> None:
    """Pretty-print an execution trace as a step table."""
    steps = trace.errors() if errors_only else trace.steps
    if as_json:
        console.print_json(json.dumps([s.model_dump(by_alias=True, mode="json") for s in steps]))
        return

    table = Table(title=f"Execution Trace ({len(steps)} steps)")
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Actor", style="cyan")
    table.add_column("Target", style="cyan")
    table.add_column("Content")
    table.add_column("ms", justify="right")

    for step in steps:
        kind = step.kind.value
        style = _KIND_STYLES.get(kind, "")
        table.add_row(
            str(step.id),
            f"[{style}]{kind}[/{style}]" if style else kind,
            step.actor,
            step.target,
            _truncate(step.content),
            f"{step.duration_ms:.1f}" if step.duration_ms is not None else "",
        )

    console.print(table)
    console.print(f"Participants: {', '.join(trace.participants())}")


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
