"""Tests for applying the registry to client documents."""

from __future__ import annotations

import logging

import pytest

from mcp_manager.exceptions import DestinationWriteFailed
from mcp_manager.sync.apply import (
    ApplyEngine,
    build_client_options,
    build_server_map,
    client_accepts,
    filter_servers_by_client,
)
from mcp_manager.sync.models import (
    ClientState,
    ClientType,
    HttpServer,
    SseServer,
    StdioServer,
)

REGISTRY = {
    "web": HttpServer(url="https://x"),
    "local": StdioServer(command="y", args=["--flag"]),
    "events": SseServer(url="https://e"),
}


def _engine(stores) -> ApplyEngine:
    _, clients = stores
    return ApplyEngine(clients)


# ---------------------------------------------------------------------------
# Capability filter
# ---------------------------------------------------------------------------


class TestCapabilityFilter:
    """Tests for client_accepts() and friends."""

    def test_code_accepts_everything(self):
        assert all(
            client_accepts(ClientType.CODE, d) for d in REGISTRY.values()
        )

    def test_desktop_accepts_only_stdio(self):
        assert filter_servers_by_client(REGISTRY, ClientType.DESKTOP) == [
            "local"
        ]

    def test_options_sorted_and_checked_from_state(self):
        state = ClientState(code=("web",), desktop=())
        options = build_client_options(REGISTRY, state, ClientType.CODE)
        assert [o.value for o in options] == ["events", "local", "web"]
        assert [o.checked for o in options] == [False, False, True]

    def test_desktop_options_hide_network_servers(self):
        options = build_client_options(
            REGISTRY, ClientState(), ClientType.DESKTOP
        )
        assert [o.label for o in options] == ["local"]


class TestBuildServerMap:
    """Tests for build_server_map()."""

    def test_desktop_omits_type_tag(self):
        servers, result = build_server_map(
            REGISTRY, ClientType.DESKTOP, ["local"]
        )
        assert servers == {"local": {"command": "y", "args": ["--flag"]}}
        assert result.written == ["local"]

    def test_code_keeps_type_tag(self):
        servers, _ = build_server_map(REGISTRY, ClientType.CODE, ["web"])
        assert servers == {"web": {"type": "http", "url": "https://x"}}

    def test_unknown_names_reported_missing(self):
        servers, result = build_server_map(
            REGISTRY, ClientType.CODE, ["ghost", "local"]
        )
        assert list(servers) == ["local"]
        assert result.missing == ["ghost"]


# ---------------------------------------------------------------------------
# apply_to_client
# ---------------------------------------------------------------------------


class TestApplyToClient:
    """Tests for ApplyEngine.apply_to_client()."""

    def test_desktop_drops_network_servers_with_warning(
        self, stores, config, read_doc, caplog
    ):
        registry = {
            "web": HttpServer(url="https://x"),
            "local": StdioServer(command="y"),
        }
        with caplog.at_level(logging.WARNING):
            result = _engine(stores).apply_to_client(
                registry, ClientType.DESKTOP, ["web", "local"]
            )

        assert read_doc(config.desktop_path) == {
            "mcpServers": {"local": {"command": "y"}}
        }
        assert result.dropped == ["web"]
        assert "Skipping 'web' for Claude Desktop" in caplog.text

    def test_rebuilds_map_from_scratch(
        self, stores, config, write_doc, read_doc
    ):
        write_doc(
            config.code_path,
            {
                "theme": "dark",
                "mcpServers": {"old": {"command": "old"}, "local": {}},
            },
        )
        _engine(stores).apply_to_client(REGISTRY, ClientType.CODE, ["local"])
        assert read_doc(config.code_path) == {
            "theme": "dark",
            "mcpServers": {
                "local": {
                    "type": "stdio",
                    "command": "y",
                    "args": ["--flag"],
                }
            },
        }

    def test_empty_selection_clears_servers(
        self, stores, config, write_doc, read_doc
    ):
        write_doc(config.code_path, {"mcpServers": {"local": {"command": "y"}}})
        _engine(stores).apply_to_client(REGISTRY, ClientType.CODE, [])
        assert read_doc(config.code_path) == {"mcpServers": {}}

    def test_write_failure_raises(self, stores, config):
        config.desktop_path.parent.parent.joinpath("Claude").write_text(
            "", encoding="utf-8"
        )
        with pytest.raises(DestinationWriteFailed):
            _engine(stores).apply_to_client(
                REGISTRY, ClientType.DESKTOP, ["local"]
            )


# ---------------------------------------------------------------------------
# apply_to_all_clients
# ---------------------------------------------------------------------------


class TestApplyToAllClients:
    """Tests for ApplyEngine.apply_to_all_clients()."""

    def test_keeps_enablement_and_upgrades_definitions(
        self, stores, config, write_doc, read_doc
    ):
        write_doc(
            config.code_path,
            {"mcpServers": {"local": {"command": "stale"}}, "keep": 1},
        )
        write_doc(
            config.desktop_path,
            {"mcpServers": {"local": {"command": "stale"}}, "other": True},
        )

        report = _engine(stores).apply_to_all_clients(REGISTRY)

        assert report.failed == []
        assert read_doc(config.code_path) == {
            "mcpServers": {
                "local": {"type": "stdio", "command": "y", "args": ["--flag"]}
            },
            "keep": 1,
        }
        assert read_doc(config.desktop_path) == {
            "mcpServers": {"local": {"command": "y", "args": ["--flag"]}},
            "other": True,
        }

    def test_uses_given_state(self, stores, config, read_doc):
        state = ClientState(code=("web", "local"), desktop=("events",))
        report = _engine(stores).apply_to_all_clients(REGISTRY, state)

        assert list(read_doc(config.code_path)["mcpServers"]) == [
            "web",
            "local",
        ]
        assert read_doc(config.desktop_path) == {"mcpServers": {}}
        assert report.for_client(ClientType.DESKTOP).dropped == ["events"]

    def test_partial_failure_reported_per_client(
        self, stores, config, read_doc
    ):
        # Make the desktop directory impossible to create.
        config.desktop_path.parent.parent.joinpath("Claude").write_text(
            "", encoding="utf-8"
        )
        state = ClientState(code=("local",), desktop=("local",))

        report = _engine(stores).apply_to_all_clients(REGISTRY, state)

        assert report.partial
        assert [r.client for r in report.succeeded] == [ClientType.CODE]
        failed = report.for_client(ClientType.DESKTOP)
        assert failed.success is False
        assert "Failed to write" in failed.error
        # The code write is not rolled back.
        assert list(read_doc(config.code_path)["mcpServers"]) == ["local"]

    async def test_async_variant_settles_both_writes(self, stores):
        report = await _engine(stores).apply_to_all_clients_async(
            REGISTRY, ClientState(code=("web",), desktop=("local",))
        )
        assert [r.client for r in report.results] == [
            ClientType.CODE,
            ClientType.DESKTOP,
        ]
        assert all(r.success for r in report.results)
