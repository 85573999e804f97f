"""Tests for the docker CLI tools (subprocess mocked)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from nexushub.tools.docker import DockerTools, _DockerOutput
from nexushub.tools.errors import ToolError


def _patch_run(stdout: str = "", stderr: str = "") -> AsyncMock:
    return AsyncMock(return_value=_DockerOutput(stdout=stdout, stderr=stderr))


class TestDockerTools:
    async def test_list_containers_parses_json_lines(self) -> None:
        mock_run = _patch_run('{"ID":"abc","Names":"web"}\n{"ID":"def","Names":"db"}\n')
        with patch.object(DockerTools, "_run_docker", mock_run):
            containers = await DockerTools().list_containers(all_containers=True)

        assert [c["Names"] for c in containers] == ["web", "db"]
        cmd = mock_run.call_args[0][0]
        assert cmd == ["docker", "ps", "-a", "--format", "json"]

    async def test_list_containers_running_only(self) -> None:
        mock_run = _patch_run("")
        with patch.object(DockerTools, "_run_docker", mock_run):
            assert await DockerTools("podman").list_containers() == []
        assert mock_run.call_args[0][0] == ["podman", "ps", "--format", "json"]

    async def test_start_container(self) -> None:
        with patch.object(DockerTools, "_run_docker", _patch_run("web")):
            result = await DockerTools().start_container("web")
        assert result == {"success": True, "container": "web", "message": "web"}

    async def test_stop_container_passes_timeout(self) -> None:
        mock_run = _patch_run("")
        with patch.object(DockerTools, "_run_docker", mock_run):
            result = await DockerTools().stop_container("web", timeout=5)
        assert mock_run.call_args[0][0] == ["docker", "stop", "-t", "5", "web"]
        assert result["message"] == "Container web stopped"

    async def test_logs_include_stderr(self) -> None:
        mock_run = _patch_run("out line", "err line")
        with patch.object(DockerTools, "_run_docker", mock_run):
            logs = await DockerTools().get_container_logs("web", tail=20)
        assert logs == "out line\nerr line"
        assert mock_run.call_args[0][0] == ["docker", "logs", "--tail", "20", "web"]
        assert mock_run.call_args[1] == {"capture_stderr": True}

    async def test_failure_wrapped(self) -> None:
        mock_run = AsyncMock(side_effect=ToolError("docker command failed (rc=1): no such container"))
        with patch.object(DockerTools, "_run_docker", mock_run):
            with pytest.raises(ToolError, match="Failed to start container: docker command failed"):
                await DockerTools().start_container("ghost")


class TestRunDocker:
    async def test_nonzero_exit_raises(self) -> None:
        proc = MagicMock()
        proc.returncode = 1
        proc.communicate = AsyncMock(return_value=(b"", b"Error: No such container: x"))
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(ToolError, match="No such container"):
                await DockerTools._run_docker(["docker", "start", "x"])

    async def test_missing_binary(self) -> None:
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("docker"))):
            with pytest.raises(ToolError, match="Failed to run docker"):
                await DockerTools._run_docker(["docker", "ps"])

    async def test_stderr_dropped_unless_requested(self) -> None:
        proc = MagicMock()
        proc.returncode = 0
        proc.communicate = AsyncMock(return_value=(b"ok\n", b"noise\n"))
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            output = await DockerTools._run_docker(["docker", "ps"])
        assert output.stdout == "ok"
        assert output.stderr == ""
