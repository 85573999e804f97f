"""Protocol layer — message model, method routing and the tool registry."""

from nexushub.protocols.dispatcher import Dispatcher
from nexushub.protocols.errors import (
    DuplicateToolError,
    MessageParseError,
    ProtocolError,
    RemoteConnectionError,
    ToolExecutionError,
    ToolNotFoundError,
)
from nexushub.protocols.methods import MethodCall, MethodKind, classify_method
from nexushub.protocols.models import (
    EXECUTION_ERROR,
    METHOD_NOT_FOUND,
    ErrorEnvelope,
    Message,
    Response,
    ToolDescriptor,
)
from nexushub.protocols.registry import (
    FunctionToolHandler,
    RegisteredTool,
    ToolHandler,
    ToolRegistry,
)

__all__ = [
    "EXECUTION_ERROR",
    "METHOD_NOT_FOUND",
    "Dispatcher",
    "DuplicateToolError",
    "ErrorEnvelope",
    "FunctionToolHandler",
    "Message",
    "MessageParseError",
    "MethodCall",
    "MethodKind",
    "ProtocolError",
    "RegisteredTool",
    "RemoteConnectionError",
    "Response",
    "ToolDescriptor",
    "ToolExecutionError",
    "ToolHandler",
    "ToolNotFoundError",
    "ToolRegistry",
    "classify_method",
]
