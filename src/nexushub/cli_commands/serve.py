"""``nexushub serve`` — HTTP transport."""

from __future__ import annotations

import click

from nexushub.cli_commands._context import CliContext  # noqa: TC001


@click.command()
@click.option("--host", default=None, help="Bind address (overrides settings).")
@click.option("--port", type=int, default=None, help="Port (overrides settings).")
@click.pass_obj
def serve(state: CliContext, host: str | None, port: int | None) -> None:
    """Serve the tool registry over HTTP."""
    import uvicorn

    from nexushub.protocols.dispatcher import Dispatcher
    from nexushub.tools import build_toolbox
    from nexushub.transports.http import create_app

    settings = state.settings
    state.setup_runtime()
    toolbox = build_toolbox(settings)
    app = create_app(
        Dispatcher(toolbox.registry),
        database=toolbox.database,
        sse_close_delay=settings.sse_close_delay,
    )
    uvicorn.run(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
