"""Transports — stdio, HTTP, the stdout supervisor and the HTTP bridge."""

from nexushub.transports.stdio import StdioEngine, protect_stdout, run_stdio
from nexushub.transports.supervisor import LineFilter, Supervisor, is_protocol_line

__all__ = [
    "LineFilter",
    "StdioEngine",
    "Supervisor",
    "is_protocol_line",
    "protect_stdout",
    "run_stdio",
]
