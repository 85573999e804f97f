"""Protocol models — messages, responses and tool descriptors.

The wire format is a JSON-RPC 2.0 flavoured envelope: one object per
message, correlated by ``id``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr

METHOD_NOT_FOUND = -32601
EXECUTION_ERROR = -32000

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

# Strict so a JSON `true` is rejected instead of coerced to 1.
MessageId = StrictStr | StrictInt | StrictFloat | None


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """One decoded unit of protocol input."""

    id: MessageId = None
    method: str
    params: dict[str, Any] | None = None


class ErrorEnvelope(BaseModel):
    """Error payload carried by a failed Response."""

    code: int
    message: str


class Response(BaseModel):
    """Reply to a Message — exactly one of ``result`` / ``error`` is meaningful.

    Build instances with :meth:`success` or :meth:`failure`; a successful
    response may legitimately carry ``result=None``.
    """

    id: MessageId = None
    result: Any = None
    error: ErrorEnvelope | None = None

    @classmethod
    def success(cls, msg_id: MessageId, result: Any) -> Response:
        return cls(id=msg_id, result=result)

    @classmethod
    def failure(cls, msg_id: MessageId, code: int, message: str) -> Response:
        return cls(id=msg_id, error=ErrorEnvelope(code=code, message=message))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_wire(self) -> dict[str, Any]:
        """Render the JSON object written to a transport."""
        wire: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            wire["error"] = self.error.model_dump()
        else:
            wire["result"] = self.result
        return wire


# ---------------------------------------------------------------------------
# Tool catalogue
# ---------------------------------------------------------------------------


class ToolDescriptor(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = {"populate_by_name": True, "frozen": True}

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
