"""NexusHub CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import find_dotenv, load_dotenv

from nexushub import __version__
from nexushub.cli_commands._context import CliContext
from nexushub.config import SettingsError, SettingsLoader


@click.group()
@click.version_option(version=__version__, prog_name="nexushub")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="NEXUSHUB_CONFIG",
    default=None,
    help="YAML settings file.",
)
@click.option("--log-level", default=None, help="Override the diagnostic log level.")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """NexusHub — MCP tool server over stdio and HTTP."""
    load_dotenv(find_dotenv(usecwd=True))
    try:
        settings = SettingsLoader(config_path).load()
    except SettingsError as exc:
        raise click.ClickException(str(exc)) from exc
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level.upper()})
    ctx.obj = CliContext(settings=settings, config_path=config_path, log_level=log_level)


# Register subcommands
from nexushub.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
