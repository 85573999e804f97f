"""HTTP transport — REST-style endpoints over the shared Dispatcher.

Each route is a direct mapping onto one method kind, so HTTP and stdio
share semantics.  Protocol-level errors are returned as ``200`` with a
JSON-RPC error body; only unexpected failures become ``500``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel

from nexushub import SERVER_NAME, __version__
from nexushub.protocols.methods import TOOLS_CALL_PREFIX, MethodCall, MethodKind, classify_method
from nexushub.protocols.models import MessageId

if TYPE_CHECKING:
    from nexushub.protocols.dispatcher import Dispatcher
    from nexushub.tools.database import ToolDatabase

logger = logging.getLogger(__name__)

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}
ENDPOINT_EVENT = "event: endpoint\n\n"


class HttpMessageBody(BaseModel):
    """POST body: the method comes from the URL path, not the body."""

    id: MessageId
    params: dict[str, Any] | None = None


async def _endpoint_events(close_delay: float) -> AsyncIterator[str]:
    yield ENDPOINT_EVENT
    await asyncio.sleep(close_delay)


def build_router(dispatcher: Dispatcher, *, sse_close_delay: float = 2.0) -> APIRouter:
    """Return the ``/mcp`` router bound to *dispatcher*."""
    router = APIRouter(prefix="/mcp", tags=["mcp"])

    async def _reply(call: MethodCall, body: HttpMessageBody) -> Response:
        response = await dispatcher.dispatch_call(call, body.id, body.params)
        if response is None:
            return Response(status_code=204)
        return JSONResponse(content=response.to_wire())

    @router.get("")
    async def event_stream() -> StreamingResponse:
        logger.debug("SSE handshake requested")
        return StreamingResponse(
            _endpoint_events(sse_close_delay),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @router.post("/initialize")
    async def initialize(body: HttpMessageBody) -> Response:
        return await _reply(MethodCall(MethodKind.INITIALIZE), body)

    @router.post("/tools/list")
    async def list_tools(body: HttpMessageBody) -> Response:
        return await _reply(MethodCall(MethodKind.LIST_TOOLS), body)

    @router.post("/tools/call/{tool_name}")
    async def call_tool(tool_name: str, body: HttpMessageBody) -> Response:
        return await _reply(classify_method(TOOLS_CALL_PREFIX + tool_name), body)

    return router


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log any unhandled exception and answer ``500``."""
    logger.error(
        "Unhandled exception in %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_type": type(exc).__name__},
    )


def create_app(
    dispatcher: Dispatcher,
    *,
    database: ToolDatabase | None = None,
    sse_close_delay: float = 2.0,
) -> FastAPI:
    """Build the FastAPI application serving *dispatcher*.

    When *database* is given its schema is created on startup and its
    engine disposed on shutdown.  Initialisation failures are logged and
    the server keeps running.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting %s %s over HTTP", SERVER_NAME, __version__)
        if database is not None:
            try:
                await database.init()
                logger.info("Database initialized successfully")
            except Exception:
                logger.exception("Database initialization failed")
        yield
        logger.info("Shutting down %s", SERVER_NAME)
        if database is not None:
            await database.dispose()

    app = FastAPI(title=SERVER_NAME, version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(build_router(dispatcher, sse_close_delay=sse_close_delay))
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"message": f"{SERVER_NAME} is running"}

    return app
