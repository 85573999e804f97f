"""Tests for the sandboxed filesystem tools."""

from __future__ import annotations

from pathlib import Path

import pytest

from nexushub.tools.errors import PathTraversalError, ToolError
from nexushub.tools.filesystem import FilesystemTools


class TestSecurePath:
    def test_relative_path_inside_root(self, tmp_path: Path) -> None:
        fs = FilesystemTools(tmp_path)
        assert fs.secure_path("a/b.txt") == tmp_path.resolve() / "a" / "b.txt"

    def test_root_itself(self, tmp_path: Path) -> None:
        assert FilesystemTools(tmp_path).secure_path(".") == tmp_path.resolve()

    def test_parent_escape_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(PathTraversalError):
            FilesystemTools(tmp_path / "root").secure_path("../secret.txt")

    def test_absolute_escape_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(PathTraversalError):
            FilesystemTools(tmp_path).secure_path("/etc/passwd")


class TestFileOperations:
    async def test_write_then_read(self, tmp_path: Path) -> None:
        fs = FilesystemTools(tmp_path)
        result = await fs.write_file("notes/todo.md", "# Todo\n")
        assert result == {
            "success": True,
            "path": "notes/todo.md",
            "message": "File written successfully",
        }
        assert await fs.read_file("notes/todo.md") == "# Todo\n"

    async def test_list_files(self, tmp_path: Path) -> None:
        (tmp_path / "b.txt").write_text("bb")
        (tmp_path / "a_dir").mkdir()
        entries = await FilesystemTools(tmp_path).list_files()
        assert [e["name"] for e in entries] == ["a_dir", "b.txt"]
        assert entries[0]["type"] == "directory"
        assert entries[1]["type"] == "file"
        assert entries[1]["size"] == 2
        assert entries[1]["modified"].endswith("+00:00")

    async def test_list_creates_missing_directory(self, tmp_path: Path) -> None:
        assert await FilesystemTools(tmp_path).list_files("fresh") == []
        assert (tmp_path / "fresh").is_dir()

    async def test_read_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ToolError, match="Failed to read file"):
            await FilesystemTools(tmp_path).read_file("missing.txt")

    async def test_write_outside_root(self, tmp_path: Path) -> None:
        with pytest.raises(ToolError, match="Path traversal attempt detected"):
            await FilesystemTools(tmp_path / "root").write_file("../escape.txt", "x")
        assert not (tmp_path / "escape.txt").exists()

    def test_definitions(self, tmp_path: Path) -> None:
        names = [tool.descriptor.name for tool in FilesystemTools(tmp_path).definitions()]
        assert names == ["fs_list_files", "fs_read_file", "fs_write_file"]
