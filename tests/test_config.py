"""Tests for config.py: path resolution and validation."""

from pathlib import Path

import pytest

from mcp_manager.config import (
    DESKTOP_CONFIG_NAME,
    Config,
    default_desktop_path,
    default_paths,
    load_config,
    validate_config,
)


class TestDefaultPaths:
    """Tests for the built-in document locations."""

    def test_home_documents(self, isolated_env):
        paths = default_paths()
        assert paths["registry"] == isolated_env / ".mcp.json"
        assert paths["code"] == isolated_env / ".claude.json"

    def test_desktop_linux(self, isolated_env):
        assert default_desktop_path("linux") == (
            isolated_env / ".config" / "Claude" / DESKTOP_CONFIG_NAME
        )

    def test_desktop_macos(self, isolated_env):
        assert default_desktop_path("darwin") == (
            isolated_env
            / "Library"
            / "Application Support"
            / "Claude"
            / DESKTOP_CONFIG_NAME
        )

    def test_desktop_windows_appdata(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APPDATA", str(tmp_path / "Roaming"))
        assert default_desktop_path("win32") == (
            tmp_path / "Roaming" / "Claude" / DESKTOP_CONFIG_NAME
        )

    def test_desktop_windows_without_appdata(self, isolated_env, monkeypatch):
        monkeypatch.delenv("APPDATA", raising=False)
        assert default_desktop_path("win32") == (
            isolated_env
            / "AppData"
            / "Roaming"
            / "Claude"
            / DESKTOP_CONFIG_NAME
        )


class TestLoadConfig:
    """Tests for load_config() precedence."""

    def test_defaults(self, isolated_env):
        config = load_config()
        assert config.registry_path == isolated_env / ".mcp.json"
        assert config.code_path == isolated_env / ".claude.json"
        assert config.debug is False

    def test_env_overrides_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MCP_MANAGER_REGISTRY", str(tmp_path / "r.json"))
        assert load_config().registry_path == tmp_path / "r.json"

    def test_cli_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MCP_MANAGER_REGISTRY", str(tmp_path / "env.json"))
        config = load_config(registry=str(tmp_path / "cli.json"))
        assert config.registry_path == tmp_path / "cli.json"

    def test_yaml_fallback_below_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MCP_MANAGER_CODE_CONFIG", str(tmp_path / "env.json"))
        config = load_config(
            yaml_fallbacks={
                "code": str(tmp_path / "yaml.json"),
                "desktop": str(tmp_path / "desk.json"),
            }
        )
        assert config.code_path == tmp_path / "env.json"
        assert config.desktop_path == tmp_path / "desk.json"

    def test_tilde_expanded(self, isolated_env):
        config = load_config(registry="~/custom.json")
        assert config.registry_path == isolated_env / "custom.json"

    @pytest.mark.parametrize("value", ["true", "1", "YES", "on"])
    def test_debug_from_env(self, monkeypatch, value):
        monkeypatch.setenv("MCP_MANAGER_DEBUG", value)
        assert load_config().debug is True

    def test_debug_env_false_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("MCP_MANAGER_DEBUG", "false")
        assert load_config(yaml_fallbacks={"debug": True}).debug is False

    def test_debug_from_yaml(self):
        assert load_config(yaml_fallbacks={"debug": True}).debug is True

    def test_same_file_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="must be different files"):
            load_config(
                registry=str(tmp_path / "same.json"),
                code=str(tmp_path / "same.json"),
            )


class TestValidateConfig:
    """Tests for validate_config()."""

    def test_directory_rejected(self, tmp_path):
        config = Config(
            registry_path=tmp_path,
            code_path=tmp_path / "c.json",
            desktop_path=tmp_path / "d.json",
        )
        with pytest.raises(ValueError, match="is a directory"):
            validate_config(config)

    def test_distinct_files_accepted(self, tmp_path):
        validate_config(
            Config(
                registry_path=tmp_path / "r.json",
                code_path=tmp_path / "c.json",
                desktop_path=Path(tmp_path / "sub" / "d.json"),
            )
        )
