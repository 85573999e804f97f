"""Dispatcher — routes a Message to a Response (or to nothing).

A single instance is shared by every transport so method-level semantics
are identical no matter how a Message arrived.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from nexushub import SERVER_NAME, __version__
from nexushub.protocols.methods import MethodCall, MethodKind, classify_method
from nexushub.protocols.models import (
    EXECUTION_ERROR,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    Message,
    MessageId,
    Response,
)
from nexushub.utils.telemetry import ATTR_ERROR_CODE, ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from nexushub.protocols.registry import ToolRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class Dispatcher:
    """Routes on the classified method of a :class:`Message`.

    ``dispatch()`` never raises for tool or routing failures; those become
    error Responses.  Notifications produce ``None``.

    Usage::

        dispatcher = Dispatcher(registry)
        response = await dispatcher.dispatch(Message(id=1, method="tools/list"))
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        server_name: str = SERVER_NAME,
        server_version: str = __version__,
    ) -> None:
        self._registry = registry
        self._server_info = {"name": server_name, "version": server_version}

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def initialize_result(self) -> dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": dict(self._server_info),
        }

    async def dispatch(self, message: Message) -> Response | None:
        """Handle *message* and return its Response, or ``None`` for notifications."""
        return await self.dispatch_call(classify_method(message.method), message.id, message.params)

    async def dispatch_call(
        self,
        call: MethodCall,
        msg_id: MessageId,
        params: dict[str, Any] | None,
    ) -> Response | None:
        """Handle an already-classified method."""
        if call.kind is MethodKind.INITIALIZE:
            logger.debug("Handling initialize request")
            return Response.success(msg_id, self.initialize_result())

        if call.kind is MethodKind.LIST_TOOLS:
            return self._list_tools(msg_id)

        if call.kind is MethodKind.CALL_TOOL:
            return await self._call_tool(msg_id, call.name or "", params)

        if call.kind is MethodKind.NOTIFICATION:
            logger.debug("Received notification: %s", call.name)
            return None

        logger.warning("Unsupported method: %s", call.name)
        return Response.failure(msg_id, METHOD_NOT_FOUND, "Method not found")

    def _list_tools(self, msg_id: MessageId) -> Response:
        try:
            tools = [descriptor.to_wire() for descriptor in self._registry.list()]
        except Exception as exc:
            logger.exception("Error getting tools")
            return Response.failure(msg_id, EXECUTION_ERROR, f"Error getting tools: {exc}")
        return Response.success(msg_id, {"tools": tools})

    async def _call_tool(
        self,
        msg_id: MessageId,
        name: str,
        params: dict[str, Any] | None,
    ) -> Response:
        logger.debug("Handling tool call: %s", name)
        with _tracer.start_as_current_span("nexushub.tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            try:
                handler = self._registry.resolve(name)
                result = await handler.invoke(params or {})
            except Exception as exc:
                logger.error("Error calling tool %s: %s", name, exc)
                span.set_attribute(ATTR_ERROR_CODE, EXECUTION_ERROR)
                return Response.failure(
                    msg_id, EXECUTION_ERROR, f"Error calling tool {name}: {exc}"
                )
        return Response.success(msg_id, result)
