"""Shared CLI output formatters."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()


def print_tools_table(tools: list[dict[str, Any]], *, namespace: str = "") -> None:
    """Pretty-print published tool descriptors as a table."""
    table = Table(title="Registered Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Parameters")
    table.add_column("Description")

    for tool in tools:
        name = tool.get("name", "?")
        if namespace and name.startswith(namespace):
            name = name[len(namespace):]
        params = ", ".join(tool.get("inputSchema", {}).get("properties", {})) or "-"
        table.add_row(name, params, _truncate(tool.get("description", "")))

    console.print(table)
    if namespace:
        console.print(f"Published with prefix [bold]{namespace}[/bold]")


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
