"""Tests for ToolRegistry."""

from __future__ import annotations

from typing import Any

import pytest

from nexushub.protocols.errors import DuplicateToolError, ToolNotFoundError
from nexushub.protocols.registry import (
    FunctionToolHandler,
    RegisteredTool,
    ToolHandler,
    ToolRegistry,
)


async def _echo(**params: Any) -> dict[str, Any]:
    return params


async def _ping() -> str:
    return "pong"


def _tools() -> list[RegisteredTool]:
    return [
        RegisteredTool.from_function(_echo, name="echo", description="Echo params"),
        RegisteredTool.from_function(_ping, name="ping", description="Ping"),
    ]


class TestToolRegistry:
    def test_list_preserves_registration_order(self) -> None:
        registry = ToolRegistry(_tools())
        assert [d.name for d in registry.list()] == ["echo", "ping"]

    def test_namespace_applied_to_published_names(self) -> None:
        registry = ToolRegistry(_tools(), namespace="mcp__Nexushub__")
        assert [d.name for d in registry.list()] == ["mcp__Nexushub__echo", "mcp__Nexushub__ping"]

    def test_resolve_accepts_bare_and_namespaced(self) -> None:
        registry = ToolRegistry(_tools(), namespace="mcp__Nexushub__")
        assert registry.resolve("ping") is registry.resolve("mcp__Nexushub__ping")

    def test_resolve_unknown_raises(self) -> None:
        registry = ToolRegistry(_tools())
        with pytest.raises(ToolNotFoundError, match="Unknown tool: nope"):
            registry.resolve("nope")

    def test_duplicate_rejected(self) -> None:
        with pytest.raises(DuplicateToolError):
            ToolRegistry([*_tools(), *_tools()])

    def test_contains_and_len(self) -> None:
        registry = ToolRegistry(_tools(), namespace="ns_")
        assert "echo" in registry
        assert "ns_echo" in registry
        assert "other" not in registry
        assert 42 not in registry
        assert len(registry) == 2

    def test_list_returns_copy(self) -> None:
        registry = ToolRegistry(_tools())
        registry.list().clear()
        assert len(registry.list()) == 2

    def test_empty_registry(self) -> None:
        registry = ToolRegistry()
        assert registry.list() == []
        assert len(registry) == 0


class TestFunctionToolHandler:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(FunctionToolHandler(_ping), ToolHandler)

    async def test_invoke_passes_params_as_kwargs(self) -> None:
        handler = FunctionToolHandler(_echo)
        assert await handler.invoke({"a": 1}) == {"a": 1}

    async def test_invoke_with_empty_params(self) -> None:
        handler = FunctionToolHandler(_ping)
        assert await handler.invoke({}) == "pong"

    async def test_failure_propagates(self) -> None:
        async def boom() -> None:
            raise RuntimeError("broken")

        with pytest.raises(RuntimeError, match="broken"):
            await FunctionToolHandler(boom).invoke({})
