"""Stdio transport — newline-delimited JSON over stdin/stdout.

stdout carries protocol lines only.  Diagnostics go through ``logging``
(configured for stderr), and :func:`protect_stdout` points ``sys.stdout``
at stderr so that stray ``print()`` calls cannot corrupt the channel.

Each input line is handled in its own task: a slow tool call does not
hold back later lines, and responses are written in completion order.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
import threading
from collections.abc import Awaitable, Callable, Iterator
from typing import TYPE_CHECKING, Any, TextIO

from nexushub.protocols.codec import encode_response, parse_message
from nexushub.protocols.errors import MessageParseError
from nexushub.protocols.models import EXECUTION_ERROR, Response

if TYPE_CHECKING:
    from nexushub.protocols.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

MAX_LINE_BYTES = 16 * 1024 * 1024

Hook = Callable[[], Awaitable[Any]]


@contextlib.contextmanager
def protect_stdout() -> Iterator[TextIO]:
    """Redirect ``sys.stdout`` to stderr and yield the real stdout."""
    protocol_out = sys.stdout
    with contextlib.redirect_stdout(sys.stderr):
        yield protocol_out


class StdioEngine:
    """Per-line protocol engine: parse, dispatch, encode, write.

    Usage::

        engine = StdioEngine(dispatcher, output=sys.stdout)
        await engine.serve(reader)
    """

    def __init__(self, dispatcher: Dispatcher, *, output: TextIO) -> None:
        self._dispatcher = dispatcher
        self._output = output
        self._closed = False
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def handle_line(self, line: str) -> str | None:
        """Return the encoded reply for *line*, or ``None`` when nothing is owed."""
        if not line.strip():
            return None

        logger.debug("Received line (%d bytes)", len(line))
        try:
            message = parse_message(line)
        except MessageParseError as exc:
            if exc.recovered_id is None:
                logger.warning("Dropping unparseable line with no recoverable id: %s", exc.cause)
                return None
            logger.warning("Could not parse request %r: %s", exc.recovered_id, exc.cause)
            return self._encode(
                Response.failure(
                    exc.recovered_id, EXECUTION_ERROR, f"Error processing request: {exc.cause}"
                )
            )

        logger.debug("Processing request: %s", message.method)
        try:
            response = await self._dispatcher.dispatch(message)
        except Exception as exc:
            logger.exception("Error processing request %s", message.method)
            if message.id is None:
                return None
            response = Response.failure(
                message.id, EXECUTION_ERROR, f"Error processing request: {exc}"
            )

        if response is None:
            return None
        return self._encode(response)

    async def process_line(self, line: str) -> None:
        encoded = await self.handle_line(line)
        if encoded is not None:
            self.write_line(encoded)

    def write_line(self, encoded: str) -> None:
        if self._closed:
            return
        try:
            self._output.write(encoded + "\n")
            self._output.flush()
        except (BrokenPipeError, OSError) as exc:
            self._closed = True
            logger.warning("Stdio transport closed while sending: %s", exc)

    async def serve(self, reader: asyncio.StreamReader) -> None:
        """Read lines until EOF, then wait for in-flight requests."""
        try:
            while not self._closed:
                try:
                    raw = await reader.readuntil(b"\n")
                except asyncio.IncompleteReadError as exc:
                    raw = exc.partial
                    if not raw:
                        break
                except asyncio.LimitOverrunError as exc:
                    logger.warning("Discarding oversized input line: %s", exc)
                    await _discard_line(reader, exc.consumed)
                    continue
                self._spawn(raw.decode("utf-8", errors="replace"))
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            for task in list(self._tasks):
                task.cancel()

    def _spawn(self, line: str) -> None:
        task = asyncio.create_task(self.process_line(line))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    def _encode(response: Response) -> str | None:
        try:
            return encode_response(response)
        except (TypeError, ValueError) as exc:
            logger.error("Error serializing response for id %r: %s", response.id, exc)
            return None


async def _discard_line(reader: asyncio.StreamReader, consumed: int) -> None:
    """Drop buffered input up to and including the next newline (or EOF)."""
    await reader.read(consumed)
    while True:
        try:
            await reader.readuntil(b"\n")
            return
        except asyncio.LimitOverrunError as exc:
            await reader.read(exc.consumed)
        except asyncio.IncompleteReadError:
            return


async def open_stdin_reader(
    stdin: TextIO | None = None,
) -> tuple[asyncio.StreamReader, asyncio.BaseTransport | None]:
    """Return a StreamReader fed from *stdin* (defaults to ``sys.stdin``) and its transport.

    Pipes, sockets and ttys are attached to the event loop directly;
    regular files fall back to a reader thread.
    """
    source = stdin if stdin is not None else sys.stdin
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
    try:
        transport, _ = await loop.connect_read_pipe(
            lambda: asyncio.StreamReaderProtocol(reader), source
        )
    except (ValueError, OSError):
        logger.debug("stdin is not a pipe; reading it from a thread")
        threading.Thread(
            target=_pump_file, args=(source, reader, loop), name="nexushub-stdin", daemon=True
        ).start()
        return reader, None
    return reader, transport


def _pump_file(source: TextIO, reader: asyncio.StreamReader, loop: asyncio.AbstractEventLoop) -> None:
    stream = getattr(source, "buffer", source)
    try:
        for raw in iter(stream.readline, b""):
            loop.call_soon_threadsafe(reader.feed_data, raw)
    finally:
        loop.call_soon_threadsafe(reader.feed_eof)


async def run_stdio(
    dispatcher: Dispatcher,
    *,
    output: TextIO,
    stdin: TextIO | None = None,
    startup: Hook | None = None,
    shutdown: Hook | None = None,
) -> int:
    """Serve the stdio protocol until EOF or SIGINT/SIGTERM; return the exit status."""
    logger.info("NexusHub MCP server starting on stdio")
    if startup is not None:
        try:
            await startup()
        except Exception:
            logger.exception("Startup hook failed; continuing without it")

    engine = StdioEngine(dispatcher, output=output)
    reader, stdin_transport = await open_stdin_reader(stdin)
    serve_task = asyncio.create_task(engine.serve(reader))

    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown, sig, serve_task)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            logger.debug("Cannot install a handler for %s here", sig.name)

    logger.info("NexusHub MCP server ready for requests")
    try:
        await serve_task
    except asyncio.CancelledError:
        logger.info("Shutting down")
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        if stdin_transport is not None:
            stdin_transport.close()
        if shutdown is not None:
            try:
                await shutdown()
            except Exception:
                logger.exception("Shutdown hook failed")
    return 0


def _request_shutdown(sig: signal.Signals, serve_task: asyncio.Task[None]) -> None:
    logger.info("%s received, shutting down", sig.name)
    serve_task.cancel()
