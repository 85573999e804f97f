"""Error types raised by tool collaborators.

The Dispatcher does not interpret these; their message text becomes the
``<cause>`` part of ``Error calling tool <name>: <cause>``.
"""

from __future__ import annotations


class ToolError(Exception):
    """Base error for a failed tool operation."""


class PathTraversalError(ToolError):
    """A filesystem path escaped the configured sandbox root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path traversal attempt detected: {path}")


class QueryNotAllowedError(ToolError):
    """A SQL statement was rejected before execution."""


class ConfigurationError(ToolError):
    """A tool cannot run because a required setting is missing."""
