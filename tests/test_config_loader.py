"""Tests for mcp_manager.config_loader: hierarchical config loading."""

import textwrap

import pytest
import yaml

from mcp_manager.config_loader import (
    _interpolate_recursive,
    discover_config_files,
    interpolate_env_vars,
    load_hierarchical_config,
)

# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("MY_HOME", "/home/me")
        assert interpolate_env_vars("${MY_HOME}/.mcp.json") == "/home/me/.mcp.json"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert (
            interpolate_env_vars("${UNSET_VAR_XYZ:-fallback}")
            == "fallback"
        )

    def test_default_ignored_when_set(self, monkeypatch):
        monkeypatch.setenv("MY_LEVEL", "DEBUG")
        assert interpolate_env_vars("${MY_LEVEL:-INFO}") == "DEBUG"

    def test_unclosed_left_alone(self):
        assert interpolate_env_vars("${OPEN") == "${OPEN"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("REG", "/r.json")
        data = {"paths": {"registry": "${REG}", "debug": True}, "l": ["${REG}"]}
        assert _interpolate_recursive(data) == {
            "paths": {"registry": "/r.json", "debug": True},
            "l": ["/r.json"],
        }


# -------------------------------------------------------------------------
# Discovery and merge
# -------------------------------------------------------------------------


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


class TestDiscoverConfigFiles:
    """Tests for discover_config_files()."""

    def test_none_found(self):
        assert discover_config_files() == []

    def test_precedence_order(self, tmp_path, isolated_env, monkeypatch):
        explicit = _write(tmp_path / "explicit.yml", "paths: {}\n")
        project = _write(tmp_path / ".mcp_manager" / "config.yml", "{}\n")
        user = _write(
            isolated_env / ".config" / "mcp_manager" / "config.yml", "{}\n"
        )
        monkeypatch.setenv("MCP_MANAGER_CONFIG", str(explicit))

        assert [p.resolve() for p in discover_config_files()] == [
            explicit.resolve(),
            project.resolve(),
            user.resolve(),
        ]

    def test_missing_explicit_path_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MCP_MANAGER_CONFIG", str(tmp_path / "nope.yml"))
        assert discover_config_files() == []


class TestLoadHierarchicalConfig:
    """Tests for load_hierarchical_config()."""

    def test_zero_config(self):
        assert load_hierarchical_config() == {}

    def test_project_wins_per_section(self, tmp_path, isolated_env):
        _write(
            isolated_env / ".config" / "mcp_manager" / "config.yml",
            """
            paths:
              registry: /user/reg.json
            logging:
              level: INFO
            """,
        )
        _write(
            tmp_path / ".mcp_manager" / "config.yml",
            """
            paths:
              code: /project/code.json
            """,
        )

        assert load_hierarchical_config() == {
            "paths": {"code": "/project/code.json"},
            "logging": {"level": "INFO"},
        }

    def test_interpolates_after_merge(self, tmp_path, monkeypatch):
        monkeypatch.setenv("REG_DIR", "/data")
        _write(
            tmp_path / ".mcp_manager" / "config.yml",
            "paths:\n  registry: ${REG_DIR}/mcp.json\n",
        )
        assert load_hierarchical_config() == {
            "paths": {"registry": "/data/mcp.json"}
        }

    def test_non_dict_root_skipped(self, tmp_path, caplog):
        _write(tmp_path / ".mcp_manager" / "config.yml", "- a\n- b\n")
        assert load_hierarchical_config() == {}
        assert "non-dict root" in caplog.text

    def test_invalid_yaml_raises(self, tmp_path):
        _write(tmp_path / ".mcp_manager" / "config.yml", "paths: [\n")
        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config()
