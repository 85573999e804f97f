"""Method classification — turns a method string into a closed variant.

Every transport classifies once; nothing downstream re-parses the string.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

TOOLS_CALL_PREFIX = "tools/call/"
NOTIFICATION_PREFIX = "notifications/"


class MethodKind(enum.Enum):
    INITIALIZE = "initialize"
    LIST_TOOLS = "tools/list"
    CALL_TOOL = "tools/call"
    NOTIFICATION = "notification"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class MethodCall:
    """A classified method.

    ``name`` is the tool name for ``CALL_TOOL``, the notification kind for
    ``NOTIFICATION`` (e.g. ``"initialized"``) and ``None`` otherwise.
    """

    kind: MethodKind
    name: str | None = None

    @property
    def expects_reply(self) -> bool:
        return self.kind is not MethodKind.NOTIFICATION


def classify_method(method: str) -> MethodCall:
    """Classify *method* into one of the fixed protocol operations."""
    if method == "initialize":
        return MethodCall(MethodKind.INITIALIZE)
    if method == "tools/list":
        return MethodCall(MethodKind.LIST_TOOLS)
    if method.startswith(TOOLS_CALL_PREFIX):
        # The tool name is the final path segment.
        return MethodCall(MethodKind.CALL_TOOL, method.rsplit("/", 1)[-1])
    if method.startswith(NOTIFICATION_PREFIX):
        return MethodCall(MethodKind.NOTIFICATION, method[len(NOTIFICATION_PREFIX):])
    return MethodCall(MethodKind.UNKNOWN, method)
