"""Supervisor — run the stdio server as a child and police its stdout.

Only complete lines that look like, and parse as, a JSON object reach the
real stdout.  Everything else the child prints on stdout or stderr ends
up in a timestamped side log file, so a stray ``print()`` in a tool can
never corrupt the protocol stream seen by the client.

The child inherits stdin directly; the supervisor never reads it.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import signal
import sys
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

SIDE_LOG_NAME = "nexushub.supervisor.sidelog"
_READ_CHUNK = 64 * 1024
_FORWARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)


def is_protocol_line(line: str) -> bool:
    """True when *line*, once trimmed, is a ``{...}`` that parses as JSON."""
    text = line.strip()
    if not (text.startswith("{") and text.endswith("}")):
        return False
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


class LineFilter:
    """Reassemble child stdout into lines and route each one.

    Bytes are buffered until a newline arrives, so a message split across
    reads is judged only once it is complete.  Blank lines are dropped.
    """

    def __init__(self, forward: Callable[[str], None], reject: Callable[[str, str], None]) -> None:
        self._forward = forward
        self._reject = reject
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> None:
        self._buffer.extend(chunk)
        while True:
            end = self._buffer.find(b"\n")
            if end < 0:
                break
            raw = bytes(self._buffer[:end])
            del self._buffer[: end + 1]
            self._route(raw)

    def flush(self) -> None:
        """Route a trailing line that never received its newline."""
        if self._buffer:
            raw = bytes(self._buffer)
            self._buffer.clear()
            self._route(raw)

    def _route(self, raw: bytes) -> None:
        line = raw.decode("utf-8", errors="replace").strip()
        if not line:
            return
        if is_protocol_line(line):
            self._forward(line)
        elif line.startswith("{") and line.endswith("}"):
            self._reject(line, "Invalid JSON")
        else:
            self._reject(line, "Filtered non-JSON")


def open_side_log(log_dir: Path) -> tuple[logging.Logger, Path]:
    """Return the side logger writing to a fresh ``nexushub-<timestamp>.log``."""
    log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    path = log_dir / f"nexushub-{stamp}.log"

    side_log = logging.getLogger(SIDE_LOG_NAME)
    side_log.setLevel(logging.DEBUG)
    side_log.propagate = False
    for handler in list(side_log.handlers):
        side_log.removeHandler(handler)
        handler.close()
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    side_log.addHandler(handler)
    return side_log, path


def default_child_command(extra_args: Sequence[str] = ()) -> list[str]:
    """The stdio server command run under the supervisor by default."""
    return [sys.executable, "-m", "nexushub", *extra_args, "stdio"]


class Supervisor:
    """Spawn *command* and filter its stdout onto *output*.

    Usage::

        side_log, _ = open_side_log(Path("/tmp"))
        code = await Supervisor(default_child_command(), side_log=side_log).run()
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        side_log: logging.Logger,
        output: BinaryIO | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        if not command:
            raise ValueError("Supervisor needs a command to run")
        self._command = list(command)
        self._side_log = side_log
        self._output = output if output is not None else sys.stdout.buffer
        self._env = env
        self._output_closed = False

    async def run(self) -> int:
        """Run the child to completion and return its exit status.

        A spawn failure is logged and reported as ``1``.
        """
        env = dict(os.environ if self._env is None else self._env)
        env.setdefault("PYTHONUNBUFFERED", "1")
        env.setdefault("PYTHONWARNINGS", "ignore")

        self._side_log.info("Starting child: %s", " ".join(self._command))
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as exc:
            self._side_log.error("Error spawning child process: %s", exc)
            return 1

        installed = self._install_signal_forwarding(proc)
        try:
            line_filter = LineFilter(self._forward, self._reject)
            await asyncio.gather(
                self._pump_stdout(proc.stdout, line_filter),
                self._pump_stderr(proc.stderr),
            )
            code = await proc.wait()
        finally:
            loop = asyncio.get_running_loop()
            for sig in installed:
                loop.remove_signal_handler(sig)

        self._side_log.info("Child process exited with code %s", code)
        return code

    async def _pump_stdout(self, stream: asyncio.StreamReader | None, line_filter: LineFilter) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            line_filter.feed(chunk)
        line_filter.flush()

    async def _pump_stderr(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            text = chunk.decode("utf-8", errors="replace").rstrip("\n")
            if text:
                self._side_log.info("[Child stderr] %s", text)

    def _forward(self, line: str) -> None:
        self._side_log.debug("[Forwarded] %s", line)
        if self._output_closed:
            return
        try:
            self._output.write(line.encode("utf-8") + b"\n")
            self._output.flush()
        except (BrokenPipeError, OSError) as exc:
            self._output_closed = True
            self._side_log.error("Client stdout closed: %s", exc)

    def _reject(self, line: str, reason: str) -> None:
        self._side_log.info("[%s] %s", reason, line)

    def _install_signal_forwarding(self, proc: asyncio.subprocess.Process) -> list[int]:
        loop = asyncio.get_running_loop()
        installed: list[int] = []
        for sig in _FORWARDED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._forward_signal, proc, sig)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                self._side_log.debug("Cannot forward signal %s on this platform", sig)
        return installed

    def _forward_signal(self, proc: asyncio.subprocess.Process, sig: int) -> None:
        self._side_log.info("Received %s, forwarding to child process", signal.Signals(sig).name)
        if proc.returncode is not None:
            return
        try:
            proc.send_signal(sig)
        except ProcessLookupError:
            self._side_log.debug("Child already gone")


def mirror_exit_status(code: int) -> int:
    """Translate the child's exit status into ours.

    A child killed by a signal is mirrored by re-raising that signal on
    ourselves; if that does not terminate us, fall back to ``128 + n``.
    """
    if code >= 0:
        return code
    sig = -code
    with contextlib.suppress(OSError, ValueError):
        signal.signal(sig, signal.SIG_DFL)
        os.kill(os.getpid(), sig)
    return 128 + sig
