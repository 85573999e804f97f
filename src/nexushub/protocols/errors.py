"""Shared error types for the protocol layer."""

from __future__ import annotations

from typing import Any


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class ToolNotFoundError(ProtocolError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ToolExecutionError(ProtocolError):
    """A tool invocation failed on the far side of a transport."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(detail or f"Tool execution failed: {name}")


class DuplicateToolError(ProtocolError):
    """Two tools were registered under the same published name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool already registered: {name}")


class MessageParseError(ProtocolError):
    """An inbound line could not be decoded into a Message.

    ``recovered_id`` carries whatever id could be salvaged from the raw
    line; ``None`` means the caller cannot be identified.
    """

    def __init__(self, cause: str, recovered_id: Any = None) -> None:
        self.cause = cause
        self.recovered_id = recovered_id
        super().__init__(cause)


class RemoteConnectionError(ProtocolError):
    """A remote NexusHub server could not be reached or answered badly."""
