"""Docker tools — drive the ``docker`` CLI via asyncio subprocesses.

No docker SDK dependency: every operation is a single CLI invocation.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from nexushub.protocols.registry import RegisteredTool
from nexushub.tools.errors import ToolError

logger = logging.getLogger(__name__)


class DockerTools:
    """``docker_*`` tools: list, start, stop and tail logs of containers."""

    def __init__(self, binary: str = "docker") -> None:
        self._binary = binary

    async def list_containers(self, all_containers: bool = False) -> list[dict[str, Any]]:
        cmd = [self._binary, "ps"]
        if all_containers:
            cmd.append("-a")
        cmd.extend(["--format", "json"])
        try:
            output = await self._run_docker(cmd)
            # Docker >= 24 prints one JSON object per line.
            return [json.loads(line) for line in output.stdout.splitlines() if line.strip()]
        except (ToolError, json.JSONDecodeError) as exc:
            logger.error("Error listing containers: %s", exc)
            raise ToolError(f"Failed to list containers: {exc}") from exc

    async def start_container(self, container_id_or_name: str) -> dict[str, Any]:
        try:
            output = await self._run_docker([self._binary, "start", container_id_or_name])
        except ToolError as exc:
            logger.error("Error starting container: %s", exc)
            raise ToolError(f"Failed to start container: {exc}") from exc
        return {
            "success": True,
            "container": container_id_or_name,
            "message": output.stdout or f"Container {container_id_or_name} started",
        }

    async def stop_container(self, container_id_or_name: str, timeout: int = 10) -> dict[str, Any]:
        try:
            output = await self._run_docker(
                [self._binary, "stop", "-t", str(int(timeout)), container_id_or_name]
            )
        except ToolError as exc:
            logger.error("Error stopping container: %s", exc)
            raise ToolError(f"Failed to stop container: {exc}") from exc
        return {
            "success": True,
            "container": container_id_or_name,
            "message": output.stdout or f"Container {container_id_or_name} stopped",
        }

    async def get_container_logs(self, container_id_or_name: str, tail: int = 100) -> str:
        try:
            output = await self._run_docker(
                [self._binary, "logs", "--tail", str(int(tail)), container_id_or_name],
                capture_stderr=True,
            )
        except ToolError as exc:
            logger.error("Error getting container logs: %s", exc)
            raise ToolError(f"Failed to get container logs: {exc}") from exc
        # `docker logs` replays the container's stderr on its own stderr.
        return "\n".join(part for part in (output.stdout, output.stderr) if part)

    @staticmethod
    async def _run_docker(cmd: list[str], *, capture_stderr: bool = False) -> _DockerOutput:
        """Run a docker CLI command and return its output."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_bytes, stderr_bytes = await proc.communicate()
        except OSError as exc:
            raise ToolError(f"Failed to run docker: {exc}") from exc

        stdout = stdout_bytes.decode(errors="replace").strip() if stdout_bytes else ""
        stderr = stderr_bytes.decode(errors="replace").strip() if stderr_bytes else ""

        if proc.returncode != 0:
            raise ToolError(f"docker command failed (rc={proc.returncode}): {stderr or stdout}")

        return _DockerOutput(stdout=stdout, stderr=stderr if capture_stderr else "")

    def definitions(self) -> list[RegisteredTool]:
        container_arg = {
            "type": "string",
            "description": "The ID or name of the container",
        }
        return [
            RegisteredTool.from_function(
                self.list_containers,
                name="docker_list_containers",
                description="Lists Docker containers.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "all_containers": {
                            "type": "boolean",
                            "description": "Whether to list all containers or only running ones",
                        },
                    },
                },
            ),
            RegisteredTool.from_function(
                self.start_container,
                name="docker_start_container",
                description="Starts a stopped Docker container.",
                input_schema={
                    "type": "object",
                    "properties": {"container_id_or_name": container_arg},
                    "required": ["container_id_or_name"],
                },
            ),
            RegisteredTool.from_function(
                self.stop_container,
                name="docker_stop_container",
                description="Stops a running Docker container.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "container_id_or_name": container_arg,
                        "timeout": {
                            "type": "number",
                            "description": "Timeout in seconds before the container is killed",
                        },
                    },
                    "required": ["container_id_or_name"],
                },
            ),
            RegisteredTool.from_function(
                self.get_container_logs,
                name="docker_get_container_logs",
                description="Fetches logs from a Docker container.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "container_id_or_name": container_arg,
                        "tail": {
                            "type": "number",
                            "description": "Number of lines to show from the end of the logs",
                        },
                    },
                    "required": ["container_id_or_name"],
                },
            ),
        ]


class _DockerOutput:
    """Simple container for docker CLI output."""

    __slots__ = ("stdout", "stderr")

    def __init__(self, stdout: str = "", stderr: str = "") -> None:
        self.stdout = stdout
        self.stderr = stderr
