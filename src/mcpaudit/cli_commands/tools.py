"""``mcpaudit tools`` — discover and call tools on an MCP server."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from mcpaudit.cli_commands._output import console, print_result, print_tools_table, print_trace

if TYPE_CHECKING:
    from mcpaudit.config import ClientSettings
    from mcpaudit.protocols.mcp.client import MCPClient
    from mcpaudit.protocols.mcp.models import ToolCallResult, ToolDescriptor
    from mcpaudit.tracking.models import ExecutionTrace

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="YAML config file; its client section supplies defaults.",
)
_timeout_option = click.option("--timeout", type=float, default=None, help="Request timeout in seconds.")


@click.group()
def tools() -> None:
    """Discover and call tools."""


@tools.command("discover")
@click.argument("url", required=False)
@_config_option
@_timeout_option
def discover(url: str | None, config_path: str | None, timeout: float | None) -> None:
    """Discover tools from an MCP server.

    URL is the server endpoint, e.g. http://localhost:3000/mcp.  It defaults
    to ``client.url`` from the config file.
    """
    from mcpaudit.protocols.errors import ProtocolError

    settings = _client_settings(config_path)

    async def _discover() -> list[ToolDescriptor]:
        async with _make_client(url or settings.url, settings, timeout) as client:
            await client.initialize()
            return await client.discover_tools()

    try:
        descriptors = asyncio.run(_discover())
    except ProtocolError as exc:
        console.print(f"[red]Discovery error:[/red] {exc}")
        sys.exit(1)

    if not descriptors:
        console.print("[yellow]No tools discovered.[/yellow]")
        return

    print_tools_table(descriptors)


@tools.command("call")
@click.argument("url")
@click.argument("name")
@click.option("--args", "args_json", default="{}", show_default=True, help="Tool arguments as a JSON object.")
@click.option("--trace", "trace_file", type=click.Path(dir_okay=False), default=None, help="Write the execution trace here.")
@click.option("--show-trace", is_flag=True, help="Print the execution trace after the call.")
@click.option("--json", "as_json", is_flag=True, help="Output the result as JSON.")
@_config_option
@_timeout_option
def call(
    url: str,
    name: str,
    args_json: str,
    trace_file: str | None,
    show_trace: bool,
    as_json: bool,
    config_path: str | None,
    timeout: float | None,
) -> None:
    """Call tool NAME on the MCP server at URL, recording an execution trace.

    The config file's ``client.services`` mapping names the service shown
    as handling each tool in the trace.
    """
    from mcpaudit.protocols.errors import ProtocolError
    from mcpaudit.tracking.run import TaskRun

    try:
        arguments: Any = json.loads(args_json)
    except ValueError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--args") from exc
    if not isinstance(arguments, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    settings = _client_settings(config_path)
    run = TaskRun(f"call {name}")

    async def _call() -> ToolCallResult:
        async with _make_client(url, settings, timeout) as client, run:
            await client.initialize()
            caller = run.tool_caller(client, services=settings.services)
            result = await caller.call_tool(name, arguments)
            run.finish(result.text)
            return result

    error: ProtocolError | None = None
    result: ToolCallResult | None = None
    try:
        result = asyncio.run(_call())
    except ProtocolError as exc:
        error = exc

    trace = run.tracker.to_trace()
    if trace_file:
        _write_trace(Path(trace_file), trace)
    if show_trace:
        print_trace(trace)

    if error is not None:
        console.print(f"[red]Call error:[/red] {error}")
        sys.exit(1)
    if result is not None:
        print_result(result, as_json=as_json)


def _client_settings(config_path: str | None) -> ClientSettings:
    from mcpaudit.config import load_config
    from mcpaudit.errors import ConfigError

    try:
        return load_config(config_path).client
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)


def _make_client(url: str, settings: ClientSettings, timeout: float | None) -> MCPClient:
    from mcpaudit.protocols.mcp.client import MCPClient

    return MCPClient(
        url,
        client_name=settings.client_name,
        timeout=timeout if timeout is not None else settings.timeout,
    )


def _write_trace(path: Path, trace: ExecutionTrace) -> None:
    path.write_bytes(trace.dump())
    console.print(f"[dim]Trace written to {path} ({len(trace.steps)} steps)[/dim]")
