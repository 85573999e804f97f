"""``nexushub tools`` — inspect the built-in tool registry."""

from __future__ import annotations

import json

import click

from nexushub.cli_commands._context import CliContext  # noqa: TC001
from nexushub.cli_commands._output import console, print_tools_table


@click.group()
def tools() -> None:
    """Inspect the tool registry."""


@tools.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the tools/list payload as JSON.")
@click.pass_obj
def list_tools(state: CliContext, as_json: bool) -> None:
    """List every tool the server publishes."""
    from nexushub.tools import build_toolbox

    registry = build_toolbox(state.settings).registry
    descriptors = [descriptor.to_wire() for descriptor in registry.list()]

    if as_json:
        console.print_json(json.dumps(descriptors))
        return

    print_tools_table(descriptors, namespace=registry.namespace)
