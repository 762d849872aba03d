"""``mcpaudit inspect`` — inspect an exported execution trace."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from pydantic import ValidationError

from mcpaudit.cli_commands._output import console, print_trace
from mcpaudit.tracking.models import ExecutionTrace


@click.command("inspect")
@click.argument("trace_file", type=click.Path(exists=True))
@click.option("--errors", "errors_only", is_flag=True, help="Show only error steps.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def inspect_cmd(trace_file: str, errors_only: bool, as_json: bool) -> None:
    """Inspect an execution trace file.

    TRACE_FILE is a JSON file written by ``mcpaudit tools call --trace``.
    """
    path = Path(trace_file)
    try:
        trace = ExecutionTrace.load(path.read_bytes())
    except (OSError, ValidationError) as exc:
        console.print(f"[red]Error loading trace:[/red] {exc}")
        sys.exit(1)

    print_trace(trace, as_json=as_json, errors_only=errors_only)
