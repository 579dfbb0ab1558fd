"""Registry reconciliation and client sync.

Public API for keeping a central registry of MCP server definitions in
step with the Claude Code and Claude Desktop configuration documents.

Architecture
------------
One *pass* reads the registry and both client documents, imports
client-only servers into the registry, and reports *conflicts* where a
client's definition of a known server diverges.  The user resolves the
conflicts, the registry is persisted, and the resolved registry can then
be *applied* back to the clients.

Modules:

- ``models``     -- ``ServerDefinition`` variants, ``Conflict``,
  ``Resolution``, ``ClientState``, ``ApplyReport``: core data contracts.
- ``normalizer`` -- raw record -> canonical definition, equality, dump.
- ``state``      -- ``RegistryStore``, ``ClientStore``, client snapshots.
- ``engine``     -- ``ReconcileEngine``: import and conflict detection.
- ``resolver``   -- conflict resolution strategies.
- ``apply``      -- ``ApplyEngine``: per-client rebuild and capability filter.
- ``reporter``   -- human-readable formatting.

Usage example
-------------
::

    from mcp_manager.config import load_config
    from mcp_manager.sync import (
        ApplyEngine, ReconcileEngine, build_stores, create_resolver,
        resolve_conflicts,
    )

    registry_store, clients = build_stores(load_config())
    engine = ReconcileEngine(registry_store, clients)

    result = engine.reconcile()
    outcome = resolve_conflicts(
        result.conflicts, create_resolver("keep-registry")
    )
    engine.commit(result, outcome.resolved)

    report = ApplyEngine(clients).apply_to_all_clients(
        result.registry, result.state
    )
"""

from .apply import ApplyEngine, build_client_options, filter_servers_by_client
from .engine import ReconcileEngine, ReconcileResult
from .models import (
    ApplyReport,
    ApplyResult,
    ClientState,
    ClientType,
    Conflict,
    HttpServer,
    Resolution,
    ResolvedServer,
    SseServer,
    StdioServer,
)
from .normalizer import definitions_equal, normalize_server
from .resolver import create_resolver, resolve_conflicts
from .state import (
    ClientStore,
    RegistryStore,
    build_stores,
    snapshot_client_state,
)

__all__ = [
    "ApplyEngine",
    "ApplyReport",
    "ApplyResult",
    "ClientState",
    "ClientStore",
    "ClientType",
    "Conflict",
    "HttpServer",
    "ReconcileEngine",
    "ReconcileResult",
    "RegistryStore",
    "Resolution",
    "ResolvedServer",
    "SseServer",
    "StdioServer",
    "build_client_options",
    "build_stores",
    "create_resolver",
    "definitions_equal",
    "filter_servers_by_client",
    "normalize_server",
    "resolve_conflicts",
    "snapshot_client_state",
]
