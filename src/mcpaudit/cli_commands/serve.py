"""``mcpaudit serve`` — run the MCP tool server over HTTP."""

from __future__ import annotations

import sys

import click

from mcpaudit.cli_commands._output import console


@click.command("serve")
@click.option("--config", "config_path", type=click.Path(exists=True), default=None, help="YAML config file.")
@click.option("--host", default=None, help="Bind address (overrides config).")
@click.option("--port", type=int, default=None, help="Listen port (overrides config).")
@click.option(
    "--require-session/--no-require-session",
    default=None,
    help="Reject tool operations from sessions that skipped initialize.",
)
def serve(config_path: str | None, host: str | None, port: int | None, require_session: bool | None) -> None:
    """Serve the registered tools at http://HOST:PORT/mcp."""
    from mcpaudit.config import load_config
    from mcpaudit.errors import ConfigError
    from mcpaudit.protocols.mcp.app import build_server, run_server

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)

    overrides = {
        key: value
        for key, value in {"host": host, "port": port, "require_session": require_session}.items()
        if value is not None
    }
    settings = config.server.model_copy(update=overrides)

    if config.telemetry.enabled:
        from mcpaudit.utils.telemetry import configure_telemetry

        configure_telemetry(
            service_name=config.telemetry.service_name,
            export_to_console=config.telemetry.export_to_console,
            otlp_endpoint=config.telemetry.otlp_endpoint,
        )

    server = build_server(settings)
    console.print(f"Serving [cyan]{len(server.registry)}[/cyan] tools at [bold]{settings.url}[/bold]")
    run_server(settings, server)
