"""Shared pytest fixtures for mcp-manager tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from mcp_manager.config import Config
from mcp_manager.exceptions import UserCancelled
from mcp_manager.sync.models import ClientType
from mcp_manager.sync.state import ClientStore, RegistryStore, build_stores

_ENV_VARS = (
    "MCP_MANAGER_CONFIG",
    "MCP_MANAGER_REGISTRY",
    "MCP_MANAGER_CODE_CONFIG",
    "MCP_MANAGER_DESKTOP_CONFIG",
    "MCP_MANAGER_DEBUG",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, tmp_path_factory, monkeypatch):
    """Keep tests away from the real home directory and config files."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def config(tmp_path) -> Config:
    """Config pointing every document into the test directory."""
    return Config(
        registry_path=tmp_path / "mcp.json",
        code_path=tmp_path / "claude.json",
        desktop_path=tmp_path / "Claude" / "claude_desktop_config.json",
    )


@pytest.fixture
def stores(
    config,
) -> tuple[RegistryStore, dict[ClientType, ClientStore]]:
    return build_stores(config)


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def write_doc():
    """Factory fixture that writes a JSON document."""
    return write_json


@pytest.fixture
def read_doc():
    """Factory fixture that reads a JSON document."""
    return read_json


class ScriptedPrompter:
    """Prompter that replays canned answers and records every question.

    An answer that is an exception instance is raised instead of returned.
    """

    def __init__(self, *answers: Any) -> None:
        self.answers = list(answers)
        self.asked: list[tuple[str, str, Any]] = []

    def _next(self, kind: str, message: str, payload: Any) -> Any:
        self.asked.append((kind, message, payload))
        if not self.answers:
            raise AssertionError(f"Unexpected {kind} prompt: {message}")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def select_one(self, message, choices):
        return self._next("select_one", message, list(choices))

    def select_many(self, message, choices):
        return self._next("select_many", message, list(choices))

    def confirm(self, message, default=True):
        return self._next("confirm", message, default)


@pytest.fixture
def prompter_factory():
    """Factory fixture building a ``ScriptedPrompter`` from answers."""
    return ScriptedPrompter


@pytest.fixture
def cancelled():
    """A prompt answer that simulates Ctrl+C."""
    return UserCancelled()
