"""Server settings — YAML file plus environment overrides."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from nexushub.protocols.registry import DEFAULT_NAMESPACE

ENV_PREFIX = "NEXUSHUB_"

# Variable names understood by earlier deployments.
_LEGACY_ENV = {
    "PORT": "port",
    "LOG_LEVEL": "log_level",
    "SERPER_API_KEY": "serper_api_key",
    "DEFAULT_DOCS_SOURCE_DIR": "docs_source_dir",
}


class SettingsError(Exception):
    """Raised when a settings file cannot be read or fails validation."""


class ServerSettings(BaseModel):
    """Runtime configuration shared by every transport and tool."""

    host: str = Field(default="127.0.0.1", description="HTTP bind address.")
    port: int = Field(default=8001, description="HTTP port.")
    log_level: str = Field(default="INFO", description="Diagnostic log level.")
    log_file: str | None = Field(default=None, description="Optional diagnostic log file.")

    database_url: str = Field(
        default="sqlite+aiosqlite:///data/mcp_server.db",
        description="SQLAlchemy URL of the tool database.",
    )
    shared_fs_path: Path = Field(
        default=Path("data/shared_fs"),
        description="Root directory the filesystem tools are confined to.",
    )
    latest_libs_path: Path = Field(
        default=Path("data/latest_libs.json"),
        description="JSON file served by get_latest_libs.",
    )
    docs_source_dir: Path = Field(
        default=Path("docs"),
        description="Default Markdown directory for ingest_docs.",
    )

    serper_api_key: str | None = Field(default=None, description="Serper API key.")
    serper_url: str = Field(default="https://google.serper.dev/search")
    fetch_timeout: float = Field(default=30.0, description="Default fetch_url timeout (s).")
    docker_binary: str = Field(default="docker")

    tool_namespace: str = Field(default=DEFAULT_NAMESPACE)
    supervisor_log_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    sse_close_delay: float = Field(default=2.0, description="Seconds before GET /mcp closes.")
    otlp_endpoint: str | None = Field(default=None, description="OTLP collector for spans.")


class SettingsLoader:
    """Load :class:`ServerSettings` from an optional YAML file and the environment."""

    def __init__(self, path: Path | None = None, environ: dict[str, str] | None = None) -> None:
        self._path = path
        self._environ = dict(os.environ) if environ is None else environ

    def load(self) -> ServerSettings:
        """Merge file values, then environment overrides, and validate.

        ``${VAR}`` references inside the YAML file are expanded before
        parsing.

        Raises:
            SettingsError: On unreadable files, YAML errors or invalid values.
        """
        data: dict[str, Any] = self._read_file() if self._path is not None else {}
        data.update(self._from_env())
        try:
            return ServerSettings.model_validate(data)
        except ValidationError as exc:
            raise SettingsError(str(exc)) from exc

    def _read_file(self) -> dict[str, Any]:
        assert self._path is not None
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot read {self._path}: {exc}") from exc

        try:
            data: Any = yaml.safe_load(os.path.expandvars(raw))
        except yaml.YAMLError as exc:
            raise SettingsError(f"YAML parse error: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SettingsError("Settings YAML must be a mapping")
        return data

    def _from_env(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for env_name, field in _LEGACY_ENV.items():
            if env_name in self._environ:
                overrides[field] = self._environ[env_name]
        if "DATABASE_PATH" in self._environ:
            overrides["database_url"] = f"sqlite+aiosqlite:///{self._environ['DATABASE_PATH']}"
        for field in ServerSettings.model_fields:
            env_name = ENV_PREFIX + field.upper()
            if env_name in self._environ:
                overrides[field] = self._environ[env_name]
        return overrides


def load_settings(path: str | Path | None = None) -> ServerSettings:
    """Shortcut for ``SettingsLoader(path).load()``."""
    return SettingsLoader(Path(path) if path is not None else None).load()
