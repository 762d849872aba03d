"""mcpaudit CLI entrypoint."""

from __future__ import annotations

import logging

import click

from mcpaudit import __version__


@click.group()
@click.version_option(version=__version__, prog_name="mcpaudit")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level for mcpaudit and its libraries.",
)
def main(log_level: str) -> None:
    """mcpaudit — MCP tool server, client and execution trace."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
from mcpaudit.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
