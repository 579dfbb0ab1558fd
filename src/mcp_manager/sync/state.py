"""Registry and client document persistence.

The registry document has the shape ``{"mcpServers": {name: definition}}``
and is the single source of truth.  Client documents share the
``mcpServers`` key but also carry fields owned by the client application;
those are preserved untouched on every write.

Key design choices:

* **Forgiving reads** -- a missing or malformed document loads as empty,
  with a warning, so a first run on a fresh machine just works.
* **Whole-map writes** -- a client's ``mcpServers`` map is always replaced
  wholesale, never patched.
* **Lossless registry** -- registry entries the normalizer does not
  recognise, and unknown keys on the ones it does, are written back as read.
* **Explicit snapshots** -- ``snapshot_client_state()`` captures which
  names each client enables at one point in time; callers thread that
  value through an operation instead of re-reading documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping

from mcp_manager.config import Config
from mcp_manager.file_handler import read_json_document, write_json_document
from mcp_manager.sync.models import (
    CLIENT_ORDER,
    ClientState,
    ClientType,
    Registry,
    ServerDefinition,
)
from mcp_manager.sync.normalizer import (
    definitions_equal,
    dump_server,
    normalize_server,
)

logger = logging.getLogger(__name__)

SERVERS_KEY = "mcpServers"


# Keys owned by the definition models; anything else on an entry is
# carried through unchanged.
_DEFINITION_KEYS = frozenset({"type", "command", "args", "env", "url", "headers"})


class RegistryStore:
    """Load and save the authoritative registry document.

    The store remembers the raw document from its last ``load()``.
    ``save()`` writes unrecognised entries and unknown keys back as they
    were, so a hand-edited registry never loses data.

    Args:
        path: Location of the registry document.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._document: dict[str, Any] = {}
        self._raw: dict[str, Any] = {}

    @property
    def passthrough(self) -> dict[str, Any]:
        """Raw entries from the last load that did not normalize."""
        return {
            name: raw
            for name, raw in self._raw.items()
            if normalize_server(raw) is None
        }

    def load(self) -> Registry:
        """Load the registry from disk.

        Returns:
            Server name -> definition.  Empty when the document is missing
            or unreadable.  Entries that do not normalize are left out and
            kept in ``passthrough`` with a warning.
        """
        data = read_json_document(self.path)
        self._document = data or {}
        self._raw = {}
        if data is None:
            return {}

        servers = data.get(SERVERS_KEY, {})
        if not isinstance(servers, dict):
            logger.warning(
                "Ignoring %s in %s: expected an object", SERVERS_KEY, self.path
            )
            return {}

        self._raw = dict(servers)
        registry: Registry = {}
        for name, raw in servers.items():
            definition = normalize_server(raw)
            if definition is None:
                logger.warning(
                    "Keeping unrecognised registry entry '%s' in %s as is",
                    name,
                    self.path,
                )
                continue
            registry[name] = definition
        return registry

    def _entry(self, name: str, definition: ServerDefinition) -> Any:
        raw = self._raw.get(name)
        if not isinstance(raw, dict):
            return dump_server(definition)
        loaded = normalize_server(raw)
        if loaded is not None and definitions_equal(loaded, definition):
            return raw
        extras = {k: v for k, v in raw.items() if k not in _DEFINITION_KEYS}
        return {**dump_server(definition), **extras}

    def save(self, registry: Registry) -> None:
        """Persist *registry* to disk.

        Entries unchanged since ``load()`` are written exactly as read,
        ``passthrough`` entries are kept in place unless *registry* now
        defines the name, and other top-level fields are preserved.

        Raises:
            DestinationWriteFailed: If the document cannot be written.
        """
        passthrough = self.passthrough
        servers: dict[str, Any] = {}
        for name, raw in self._raw.items():
            if name in registry:
                servers[name] = self._entry(name, registry[name])
            elif name in passthrough:
                servers[name] = raw
        for name, definition in registry.items():
            if name not in servers:
                servers[name] = self._entry(name, definition)

        document = dict(self._document)
        document[SERVERS_KEY] = servers
        write_json_document(self.path, document)
        logger.info(
            "Saved registry with %d servers to %s", len(registry), self.path
        )


@dataclass
class ClientDocument:
    """A client's configuration document as read from disk.

    Attributes:
        client: Which client owns the document.
        data: The whole document, including fields owned by the client.
    """

    client: ClientType
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def servers(self) -> dict[str, Any]:
        """The raw ``mcpServers`` map, or ``{}`` if it is absent or invalid."""
        servers = self.data.get(SERVERS_KEY, {})
        return servers if isinstance(servers, dict) else {}

    def iter_servers(self) -> Iterator[tuple[str, Any]]:
        """Yield ``(name, raw_definition)`` pairs in document order.

        Desktop documents omit the variant tag, so ``"stdio"`` is injected
        unless the entry carries its own.
        """
        for name, raw in self.servers.items():
            if self.client is ClientType.DESKTOP and isinstance(raw, dict):
                raw = {"type": "stdio", **raw}
            yield name, raw

    def with_servers(self, servers: dict[str, Any]) -> ClientDocument:
        """Return a copy whose ``mcpServers`` map is replaced by *servers*."""
        data = dict(self.data)
        data[SERVERS_KEY] = servers
        return ClientDocument(client=self.client, data=data)


class ClientStore:
    """Load and save one client's configuration document.

    Args:
        client: The client whose document lives at *path*.
        path: Location of the client document.
    """

    def __init__(self, client: ClientType, path: Path) -> None:
        self.client = client
        self.path = path

    def load(self) -> ClientDocument:
        """Load the document, substituting an empty one if unreadable."""
        data = read_json_document(self.path)
        if data is None:
            return ClientDocument(client=self.client)
        if SERVERS_KEY in data and not isinstance(data[SERVERS_KEY], dict):
            logger.warning(
                "Ignoring %s in %s: expected an object", SERVERS_KEY, self.path
            )
        return ClientDocument(client=self.client, data=data)

    def save(self, document: ClientDocument) -> None:
        """Persist *document*.

        Raises:
            DestinationWriteFailed: If the document cannot be written.
        """
        write_json_document(self.path, document.data)
        logger.info(
            "Saved %s config with %d servers to %s",
            self.client.label,
            len(document.servers),
            self.path,
        )


def build_stores(
    config: Config,
) -> tuple[RegistryStore, dict[ClientType, ClientStore]]:
    """Create the registry store and one store per client from *config*."""
    clients = {
        ClientType.CODE: ClientStore(ClientType.CODE, config.code_path),
        ClientType.DESKTOP: ClientStore(
            ClientType.DESKTOP, config.desktop_path
        ),
    }
    return RegistryStore(config.registry_path), clients


def snapshot_client_state(
    documents: Mapping[ClientType, ClientDocument],
) -> ClientState:
    """Capture the names each client currently enables.

    Pure: the result depends only on *documents*.  Clients missing from
    *documents* are treated as enabling nothing.
    """
    enabled: dict[str, tuple[str, ...]] = {}
    for client in CLIENT_ORDER:
        document = documents.get(client)
        names = tuple(document.servers) if document is not None else ()
        enabled[client.value] = names
    return ClientState(**enabled)


def load_client_state(clients: Mapping[ClientType, ClientStore]) -> ClientState:
    """Read every client document and snapshot its enabled names."""
    return snapshot_client_state(
        {client: store.load() for client, store in clients.items()}
    )
