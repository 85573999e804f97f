"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from nexushub.cli_commands.bridge import bridge
    from nexushub.cli_commands.serve import serve
    from nexushub.cli_commands.stdio import stdio
    from nexushub.cli_commands.supervise import supervise
    from nexushub.cli_commands.tools import tools

    cli.add_command(stdio)
    cli.add_command(supervise)
    cli.add_command(serve)
    cli.add_command(bridge)
    cli.add_command(tools)
