"""Tool registry — an immutable catalogue of descriptors and handlers.

Built once at startup and passed by reference to the :class:`Dispatcher`;
there is no runtime registration.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from nexushub.protocols.errors import DuplicateToolError, ToolNotFoundError
from nexushub.protocols.models import ToolDescriptor

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "mcp__Nexushub__"


@runtime_checkable
class ToolHandler(Protocol):
    """Executes one tool.  Failures propagate to the caller untouched."""

    async def invoke(self, params: dict[str, Any]) -> Any:
        """Run the tool with *params* and return a JSON-serialisable value."""
        ...


class FunctionToolHandler:
    """Adapts an async function taking keyword arguments to :class:`ToolHandler`."""

    def __init__(self, fn: Callable[..., Awaitable[Any]]) -> None:
        self._fn = fn

    async def invoke(self, params: dict[str, Any]) -> Any:
        return await self._fn(**(params or {}))

    def __repr__(self) -> str:
        return f"FunctionToolHandler({getattr(self._fn, '__qualname__', self._fn)!r})"


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    handler: ToolHandler

    @classmethod
    def from_function(
        cls,
        fn: Callable[..., Awaitable[Any]],
        *,
        name: str,
        description: str,
        input_schema: dict[str, Any] | None = None,
    ) -> RegisteredTool:
        descriptor = ToolDescriptor(
            name=name,
            description=description,
            input_schema=input_schema or {"type": "object", "properties": {}},
        )
        return cls(descriptor=descriptor, handler=FunctionToolHandler(fn))


class ToolRegistry:
    """Ordered, read-only name → handler table.

    Descriptors are published as ``<namespace><name>``; :meth:`resolve`
    accepts either the published or the bare name.

    Usage::

        registry = ToolRegistry([RegisteredTool(...), ...])
        registry.list()              # descriptors in registration order
        handler = registry.resolve("fs_read_file")
    """

    def __init__(self, tools: Iterable[RegisteredTool] = (), *, namespace: str = "") -> None:
        self._namespace = namespace
        self._descriptors: list[ToolDescriptor] = []
        self._handlers: dict[str, ToolHandler] = {}
        for tool in tools:
            self._add(tool)
        logger.debug("Registered %d tools (namespace=%r)", len(self._descriptors), namespace)

    @property
    def namespace(self) -> str:
        return self._namespace

    def list(self) -> list[ToolDescriptor]:
        """Return all descriptors in registration order."""
        return list(self._descriptors)

    def resolve(self, name: str) -> ToolHandler:
        """Return the handler for *name*.

        Raises:
            ToolNotFoundError: If no tool is registered under *name*.
        """
        handler = self._handlers.get(self._bare(name))
        if handler is None:
            raise ToolNotFoundError(name)
        return handler

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._bare(name) in self._handlers

    def __len__(self) -> int:
        return len(self._descriptors)

    def _add(self, tool: RegisteredTool) -> None:
        bare = self._bare(tool.descriptor.name)
        if bare in self._handlers:
            raise DuplicateToolError(self._namespace + bare)
        self._handlers[bare] = tool.handler
        self._descriptors.append(tool.descriptor.model_copy(update={"name": self._namespace + bare}))

    def _bare(self, name: str) -> str:
        if self._namespace and name.startswith(self._namespace):
            return name[len(self._namespace):]
        return name
