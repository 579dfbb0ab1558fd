"""Write the registry back out to client documents.

``ApplyEngine.apply_to_client`` rebuilds one client's ``mcpServers`` map
from scratch out of the selected registry entries; every other field of
the document is kept.  ``apply_to_all_clients`` re-applies each client's
current selection so that enabled servers pick up resolved registry
definitions.

Capability filter: Claude Desktop only runs stdio servers and stores them
without the ``type`` tag, so http/sse selections are dropped with a
warning.  Claude Code accepts every shape, tag included.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping, assert_never

from mcp_manager.core.async_utils import gather_settled, run_sync
from mcp_manager.exceptions import DestinationWriteFailed
from mcp_manager.prompts import Choice
from mcp_manager.sync.models import (
    CLIENT_ORDER,
    ApplyReport,
    ApplyResult,
    ClientState,
    ClientType,
    HttpServer,
    Registry,
    ServerDefinition,
    SseServer,
    StdioServer,
)
from mcp_manager.sync.normalizer import dump_server
from mcp_manager.sync.state import ClientStore, load_client_state

logger = logging.getLogger(__name__)


def client_accepts(client: ClientType, definition: ServerDefinition) -> bool:
    """Return ``True`` if *client* can run *definition*."""
    if client is ClientType.CODE:
        return True
    match definition:
        case StdioServer():
            return True
        case HttpServer() | SseServer():
            return False
        case _:
            assert_never(definition)


def filter_servers_by_client(
    registry: Registry, client: ClientType
) -> list[str]:
    """Names in *registry* whose definitions *client* can run."""
    return [
        name
        for name, definition in registry.items()
        if client_accepts(client, definition)
    ]


def build_client_options(
    registry: Registry, state: ClientState, client: ClientType
) -> list[Choice]:
    """Checkbox options for *client*, sorted by name.

    Each option is pre-checked when the name is enabled in *state*.
    """
    return [
        Choice(label=name, value=name, checked=state.is_enabled(client, name))
        for name in sorted(filter_servers_by_client(registry, client))
    ]


def build_server_map(
    registry: Registry, client: ClientType, selected: Iterable[str]
) -> tuple[dict[str, Any], ApplyResult]:
    """Build the document form of *client*'s server map.

    Returns:
        The new ``mcpServers`` map and a successful ``ApplyResult``
        describing what was written, dropped, or not found.
    """
    servers: dict[str, Any] = {}
    dropped: list[str] = []
    missing: list[str] = []

    for name in selected:
        if name in servers:
            continue
        definition = registry.get(name)
        if definition is None:
            logger.warning(
                "Skipping '%s' for %s: not in registry", name, client.label
            )
            missing.append(name)
            continue
        if not client_accepts(client, definition):
            logger.warning(
                "Skipping '%s' for %s: %s servers not supported",
                name,
                client.label,
                definition.type,
            )
            dropped.append(name)
            continue
        servers[name] = dump_server(
            definition, include_type=client is ClientType.CODE
        )

    result = ApplyResult(
        client=client,
        success=True,
        written=list(servers),
        dropped=dropped,
        missing=missing,
    )
    return servers, result


class ApplyEngine:
    """Rebuild client documents from the registry.

    Args:
        clients: One store per client.
    """

    def __init__(self, clients: Mapping[ClientType, ClientStore]) -> None:
        self.clients = clients

    def apply_to_client(
        self,
        registry: Registry,
        client: ClientType,
        selected: Iterable[str],
    ) -> ApplyResult:
        """Replace *client*'s server map with exactly *selected*.

        Raises:
            DestinationWriteFailed: If the client document cannot be written.
        """
        store = self.clients[client]
        document = store.load()
        servers, result = build_server_map(registry, client, selected)
        store.save(document.with_servers(servers))
        logger.info(
            "%s: %d servers enabled", client.label, len(result.written)
        )
        return result

    async def apply_to_all_clients_async(
        self, registry: Registry, state: ClientState
    ) -> ApplyReport:
        """Re-apply every client's enabled names concurrently.

        Both writes are awaited; a failed write does not stop or undo the
        other.  Failures are reported per client in the returned report.
        """
        clients = [c for c in CLIENT_ORDER if c in self.clients]
        outcomes = await gather_settled(
            [
                run_sync(
                    self.apply_to_client,
                    registry,
                    client,
                    state.enabled(client),
                )
                for client in clients
            ]
        )

        results: list[ApplyResult] = []
        unexpected: BaseException | None = None
        for client, outcome in zip(clients, outcomes):
            if isinstance(outcome, DestinationWriteFailed):
                logger.error("%s", outcome)
                results.append(
                    ApplyResult(
                        client=client, success=False, error=str(outcome)
                    )
                )
            elif isinstance(outcome, BaseException):
                unexpected = unexpected or outcome
            else:
                results.append(outcome)

        if unexpected is not None:
            raise unexpected
        return ApplyReport(results=results)

    def apply_to_all_clients(
        self, registry: Registry, state: ClientState | None = None
    ) -> ApplyReport:
        """Re-apply every client's current selection from *registry*.

        Args:
            registry: The resolved registry.
            state: Enabled names per client.  Read from the documents now,
                before any of them is rewritten, when not given.
        """
        if state is None:
            state = load_client_state(self.clients)
        return asyncio.run(self.apply_to_all_clients_async(registry, state))
