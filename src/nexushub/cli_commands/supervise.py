"""``nexushub supervise`` — run the stdio server behind the output filter."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from nexushub.cli_commands._context import CliContext  # noqa: TC001


@click.command(context_settings={"ignore_unknown_options": True})
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the side log (defaults to the system temp dir).",
)
@click.argument("child", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def supervise(state: CliContext, log_dir: Path | None, child: tuple[str, ...]) -> None:
    """Run a stdio server as a child, forwarding only JSON lines to stdout.

    CHILD is the command to supervise (after ``--``); by default this
    server's own ``stdio`` command.  Everything else the child prints goes
    to a ``nexushub-<timestamp>.log`` side log.
    """
    from nexushub.transports.supervisor import (
        Supervisor,
        default_child_command,
        mirror_exit_status,
        open_side_log,
    )

    side_log, log_path = open_side_log(log_dir or state.settings.supervisor_log_dir)
    side_log.info("Supervisor started, side log at %s", log_path)
    command = list(child) or default_child_command(state.global_args())
    code = asyncio.run(Supervisor(command, side_log=side_log).run())
    sys.exit(mirror_exit_status(code))
