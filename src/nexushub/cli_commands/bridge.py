"""``nexushub bridge`` — expose a running HTTP server over stdio."""

from __future__ import annotations

import asyncio
import sys

import click

from nexushub.cli_commands._context import CliContext  # noqa: TC001


@click.command()
@click.option(
    "--url",
    envvar="NEXUSHUB_SERVER_URL",
    default=None,
    help="Base URL of the HTTP server (defaults to the configured host and port).",
)
@click.option("--timeout", type=float, default=30.0, show_default=True, help="Request timeout (s).")
@click.pass_obj
def bridge(state: CliContext, url: str | None, timeout: float) -> None:
    """Relay stdio JSON-RPC to a NexusHub HTTP server."""
    from nexushub.transports.bridge import run_bridge
    from nexushub.transports.stdio import protect_stdout

    settings = state.settings
    base_url = url or f"http://{settings.host}:{settings.port}"
    with protect_stdout() as protocol_out:
        state.setup_runtime()
        code = asyncio.run(run_bridge(base_url, output=protocol_out, timeout=timeout))
    sys.exit(code)
