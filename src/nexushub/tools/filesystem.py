"""Filesystem tools confined to a single root directory."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from nexushub.protocols.registry import RegisteredTool
from nexushub.tools.errors import PathTraversalError, ToolError

logger = logging.getLogger(__name__)


class FilesystemTools:
    """List, read and write files below ``base_path``.

    Every incoming path is resolved relative to the root; anything that
    resolves outside it raises :class:`PathTraversalError`.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = base_path.resolve()

    @property
    def base_path(self) -> Path:
        return self._base

    def secure_path(self, path: str | None = ".") -> Path:
        resolved = (self._base / (path or ".")).resolve()
        if resolved != self._base and self._base not in resolved.parents:
            raise PathTraversalError(str(path))
        return resolved

    async def list_files(self, path: str = ".") -> list[dict[str, Any]]:
        try:
            return await asyncio.to_thread(self._list_sync, path)
        except (OSError, ToolError) as exc:
            logger.error("Error listing files: %s", exc)
            raise ToolError(f"Failed to list files: {exc}") from exc

    async def read_file(self, path: str) -> str:
        try:
            target = self.secure_path(path)
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError, ToolError) as exc:
            logger.error("Error reading file: %s", exc)
            raise ToolError(f"Failed to read file: {exc}") from exc

    async def write_file(self, path: str, content: str) -> dict[str, Any]:
        try:
            target = self.secure_path(path)
            await asyncio.to_thread(self._write_sync, target, content)
        except (OSError, ToolError) as exc:
            logger.error("Error writing file: %s", exc)
            raise ToolError(f"Failed to write file: {exc}") from exc
        return {
            "success": True,
            "path": str(target.relative_to(self._base)),
            "message": "File written successfully",
        }

    def _list_sync(self, path: str) -> list[dict[str, Any]]:
        directory = self.secure_path(path)
        directory.mkdir(parents=True, exist_ok=True)
        entries = []
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            stats = entry.stat()
            entries.append({
                "name": entry.name,
                "path": str(entry.relative_to(self._base)),
                "type": "directory" if entry.is_dir() else "file",
                "size": stats.st_size,
                "modified": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc).isoformat(),
            })
        return entries

    @staticmethod
    def _write_sync(target: Path, content: str) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def definitions(self) -> list[RegisteredTool]:
        return [
            RegisteredTool.from_function(
                self.list_files,
                name="fs_list_files",
                description="Lists files and directories within a secure path.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": "Path to list (relative to secure base path)",
                        },
                    },
                },
            ),
            RegisteredTool.from_function(
                self.read_file,
                name="fs_read_file",
                description="Reads the content of a file within a secure path.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": "Path to file (relative to secure base path)",
                        },
                    },
                    "required": ["path"],
                },
            ),
            RegisteredTool.from_function(
                self.write_file,
                name="fs_write_file",
                description="Writes content to a file within a secure path.",
                input_schema={
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": "Path to file (relative to secure base path)",
                        },
                        "content": {
                            "type": "string",
                            "description": "Content to write to the file",
                        },
                    },
                    "required": ["path", "content"],
                },
            ),
        ]
