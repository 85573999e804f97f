"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from nexushub.config import ServerSettings, SettingsError, SettingsLoader


class TestDefaults:
    def test_defaults(self) -> None:
        settings = SettingsLoader(environ={}).load()
        assert settings.port == 8001
        assert settings.database_url == "sqlite+aiosqlite:///data/mcp_server.db"
        assert settings.tool_namespace == "mcp__Nexushub__"
        assert settings.sse_close_delay == 2.0
        assert settings.serper_api_key is None


class TestYamlFile:
    def test_values_loaded(self, tmp_path: Path) -> None:
        path = tmp_path / "nexushub.yaml"
        path.write_text("port: 9000\nshared_fs_path: /srv/shared\nlog_level: DEBUG\n")
        settings = SettingsLoader(path, environ={}).load()
        assert settings.port == 9000
        assert settings.shared_fs_path == Path("/srv/shared")
        assert settings.log_level == "DEBUG"

    def test_env_vars_expanded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SERPER_TOKEN", "from-env")
        path = tmp_path / "nexushub.yaml"
        path.write_text("serper_api_key: ${SERPER_TOKEN}\n")
        assert SettingsLoader(path, environ={}).load().serper_api_key == "from-env"

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert SettingsLoader(path, environ={}).load() == ServerSettings()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SettingsError, match="Cannot read"):
            SettingsLoader(tmp_path / "nope.yaml", environ={}).load()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("port: [unclosed\n")
        with pytest.raises(SettingsError, match="YAML parse error"):
            SettingsLoader(path, environ={}).load()

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(SettingsError, match="must be a mapping"):
            SettingsLoader(path, environ={}).load()

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "bad_port.yaml"
        path.write_text("port: not-a-number\n")
        with pytest.raises(SettingsError):
            SettingsLoader(path, environ={}).load()


class TestEnvironment:
    def test_prefixed_overrides_file(self, tmp_path: Path) -> None:
        path = tmp_path / "nexushub.yaml"
        path.write_text("port: 9000\n")
        settings = SettingsLoader(path, environ={"NEXUSHUB_PORT": "9100"}).load()
        assert settings.port == 9100

    def test_legacy_names(self) -> None:
        settings = SettingsLoader(
            environ={
                "PORT": "3000",
                "SERPER_API_KEY": "abc",
                "DATABASE_PATH": "/var/lib/nexus.db",
                "DEFAULT_DOCS_SOURCE_DIR": "handbook",
            }
        ).load()
        assert settings.port == 3000
        assert settings.serper_api_key == "abc"
        assert settings.database_url == "sqlite+aiosqlite:////var/lib/nexus.db"
        assert settings.docs_source_dir == Path("handbook")

    def test_prefixed_wins_over_legacy(self) -> None:
        settings = SettingsLoader(environ={"PORT": "3000", "NEXUSHUB_PORT": "4000"}).load()
        assert settings.port == 4000
