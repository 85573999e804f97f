"""Bridge — expose a running HTTP NexusHub server over stdio.

The remote tool list is fetched once when the bridge starts; every tool
call is forwarded to ``POST /mcp/tools/call/<name>``.  The bridge's own
registry is then served through the ordinary stdio engine.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, TextIO

import httpx

from nexushub.protocols.dispatcher import Dispatcher
from nexushub.protocols.errors import RemoteConnectionError, ToolExecutionError
from nexushub.protocols.models import ToolDescriptor
from nexushub.protocols.registry import RegisteredTool, ToolRegistry
from nexushub.transports.stdio import run_stdio

logger = logging.getLogger(__name__)

_request_ids = itertools.count(1)


class RemoteToolHandler:
    """Forwards one tool's invocations to the remote server."""

    def __init__(self, client: httpx.AsyncClient, name: str) -> None:
        self._client = client
        self._name = name

    async def invoke(self, params: dict[str, Any]) -> Any:
        body = {"id": f"bridge-{next(_request_ids)}", "params": params}
        try:
            response = await self._client.post(f"/mcp/tools/call/{self._name}", json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ToolExecutionError(self._name, f"Remote call failed: {exc}") from exc

        error = payload.get("error")
        if error:
            raise ToolExecutionError(self._name, self._strip_prefix(str(error.get("message", error))))
        return payload.get("result")

    def _strip_prefix(self, message: str) -> str:
        # The remote dispatcher already prefixed the message; ours will add it again.
        prefix = f"Error calling tool {self._name}: "
        return message[len(prefix):] if message.startswith(prefix) else message


async def fetch_remote_tools(client: httpx.AsyncClient) -> list[ToolDescriptor]:
    """Return the remote server's published tool descriptors.

    Raises:
        RemoteConnectionError: If the server is unreachable or replies with an error.
    """
    try:
        response = await client.post("/mcp/tools/list", json={"id": "bridge-tools"})
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise RemoteConnectionError(f"Could not fetch tools: {exc}") from exc

    if payload.get("error"):
        raise RemoteConnectionError(f"Could not fetch tools: {payload['error'].get('message')}")
    tools = (payload.get("result") or {}).get("tools", [])
    return [ToolDescriptor.model_validate(tool) for tool in tools]


async def build_remote_registry(client: httpx.AsyncClient) -> ToolRegistry:
    """Build a registry whose handlers forward to the server behind *client*."""
    descriptors = await fetch_remote_tools(client)
    logger.info("Fetched %d tools from %s", len(descriptors), client.base_url)
    return ToolRegistry(
        RegisteredTool(descriptor=d, handler=RemoteToolHandler(client, d.name)) for d in descriptors
    )


async def run_bridge(
    base_url: str,
    *,
    output: TextIO,
    stdin: TextIO | None = None,
    timeout: float = 30.0,
) -> int:
    """Serve the remote server at *base_url* on stdio; return the exit status."""
    async with httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout) as client:
        try:
            registry = await build_remote_registry(client)
        except RemoteConnectionError as exc:
            logger.error("Bridge startup failed: %s", exc)
            return 1
        return await run_stdio(Dispatcher(registry), output=output, stdin=stdin)
