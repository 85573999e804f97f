"""``nexushub stdio`` — serve the tool registry on stdin/stdout."""

from __future__ import annotations

import asyncio
import sys

import click

from nexushub.cli_commands._context import CliContext  # noqa: TC001


@click.command()
@click.pass_obj
def stdio(state: CliContext) -> None:
    """Serve newline-delimited JSON-RPC on stdin/stdout.

    stdout carries protocol lines only; all diagnostics go to stderr.
    """
    from nexushub.protocols.dispatcher import Dispatcher
    from nexushub.tools import build_toolbox
    from nexushub.transports.stdio import protect_stdout, run_stdio

    settings = state.settings
    with protect_stdout() as protocol_out:
        state.setup_runtime()
        toolbox = build_toolbox(settings)
        code = asyncio.run(
            run_stdio(
                Dispatcher(toolbox.registry),
                output=protocol_out,
                startup=toolbox.database.init,
                shutdown=toolbox.database.dispose,
            )
        )
    sys.exit(code)
