"""Import and reconcile client definitions against the registry.

The ``ReconcileEngine`` runs one import pass:

1. Loads the registry and every client document.
2. Walks each client's servers in document order, clients in the fixed
   order code then desktop.
3. Normalizes each entry; entries that do not normalize are skipped.
4. Copies names the registry does not know into the registry.
5. Records a ``Conflict`` when a known name has a different definition,
   keeping only the first client's conflict for any given name.

The pass never writes.  ``commit()`` folds the user's resolutions into the
registry and persists it when the pass imported something or a resolution
changed an entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from mcp_manager.sync.models import (
    CLIENT_ORDER,
    ClientState,
    ClientType,
    Conflict,
    ImportRecord,
    Registry,
    ResolvedServer,
)
from mcp_manager.sync.normalizer import definitions_equal, normalize_server
from mcp_manager.sync.state import (
    ClientDocument,
    ClientStore,
    RegistryStore,
    snapshot_client_state,
)

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one import pass.

    Attributes:
        registry: The registry with imports applied (not yet persisted).
        conflicts: Conflicts in detection order, at most one per name.
        imported: Definitions copied from clients into the registry.
        state: Names each client enabled when the pass read its document.
    """

    registry: Registry
    conflicts: list[Conflict] = field(default_factory=list)
    imported: list[ImportRecord] = field(default_factory=list)
    state: ClientState = field(default_factory=ClientState)

    @property
    def dirty(self) -> bool:
        """True if the pass inserted at least one definition."""
        return bool(self.imported)


class ReconcileEngine:
    """Detect new and diverging client definitions.

    Args:
        registry_store: Store for the authoritative registry.
        clients: One store per client.
    """

    def __init__(
        self,
        registry_store: RegistryStore,
        clients: Mapping[ClientType, ClientStore],
    ) -> None:
        self.registry_store = registry_store
        self.clients = clients

    def reconcile(self) -> ReconcileResult:
        """Run an import pass over every client.

        Returns:
            A ``ReconcileResult`` holding the mutated registry, the conflicts
            found, the imports made, and a snapshot of client state.
        """
        registry = self.registry_store.load()
        documents: dict[ClientType, ClientDocument] = {
            client: self.clients[client].load()
            for client in CLIENT_ORDER
            if client in self.clients
        }

        result = ReconcileResult(
            registry=registry, state=snapshot_client_state(documents)
        )
        conflicted: set[str] = set()

        for client, document in documents.items():
            for name, raw in document.iter_servers():
                self._reconcile_entry(
                    client, name, raw, result, conflicted
                )

        logger.info(
            "Reconciled %d clients: %d imported, %d conflicts",
            len(documents),
            len(result.imported),
            len(result.conflicts),
        )
        return result

    def _reconcile_entry(
        self,
        client: ClientType,
        name: str,
        raw: object,
        result: ReconcileResult,
        conflicted: set[str],
    ) -> None:
        definition = normalize_server(raw)
        if definition is None or not name:
            logger.debug(
                "Skipping unrecognised server '%s' in %s", name, client.label
            )
            return

        existing = result.registry.get(name)
        if existing is None:
            result.registry[name] = definition
            result.imported.append(
                ImportRecord(
                    server_name=name, client=client, definition=definition
                )
            )
            logger.info("Imported server '%s' from %s", name, client.label)
            return

        if definitions_equal(existing, definition):
            return

        if name in conflicted:
            # First client in processing order owns the conflict.
            logger.debug(
                "Ignoring second conflict for '%s' from %s",
                name,
                client.label,
            )
            return

        conflicted.add(name)
        result.conflicts.append(
            Conflict(
                server_name=name,
                registry_definition=existing,
                client_definition=definition,
                client=client,
            )
        )
        logger.info(
            "Conflict for '%s': %s differs from registry", name, client.label
        )

    def fold_resolutions(
        self,
        result: ReconcileResult,
        resolutions: Sequence[ResolvedServer],
    ) -> None:
        """Overwrite registry entries with the chosen client definitions."""
        for resolved in resolutions:
            result.registry[resolved.server_name] = resolved.definition
            logger.info(
                "Registry entry '%s' replaced by client version",
                resolved.server_name,
            )

    def commit(
        self,
        result: ReconcileResult,
        resolutions: Sequence[ResolvedServer] = (),
    ) -> bool:
        """Fold *resolutions* in and persist the registry if anything changed.

        Returns:
            ``True`` if the registry was written.

        Raises:
            DestinationWriteFailed: If the registry cannot be written.
        """
        self.fold_resolutions(result, resolutions)
        if not result.dirty and not resolutions:
            logger.debug("Registry unchanged, not saving")
            return False
        self.registry_store.save(result.registry)
        return True
