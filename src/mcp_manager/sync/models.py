"""Pydantic models for the registry sync engine.

Defines the core data contracts used across all sync modules:

- ``StdioServer``, ``HttpServer``, ``SseServer``: the three canonical
  server definition shapes, joined into the ``ServerDefinition`` union.
- ``ClientType``: the clients whose documents are kept in sync.
- ``Conflict``: a client definition that diverges from the registry.
- ``Resolution`` / ``ResolvedServer``: the user's answer to a conflict.
- ``ImportRecord``: a definition copied from a client into the registry.
- ``ClientState``: which names each client currently enables.
- ``ApplyResult`` / ``ApplyReport``: outcome of writing client documents.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Server definitions
# ---------------------------------------------------------------------------


class StdioServer(BaseModel):
    """A server launched as a local subprocess speaking over stdio.

    Attributes:
        type: Variant tag, always ``"stdio"``.
        command: Executable to launch.
        args: Command line arguments, in order.
        env: Extra environment variables for the subprocess.
    """

    type: Literal["stdio"] = "stdio"
    command: str = Field(min_length=1)
    args: list[str] | None = None
    env: dict[str, str] | None = None

    model_config = {"frozen": True}


class HttpServer(BaseModel):
    """A remote server reached over streamable HTTP."""

    type: Literal["http"] = "http"
    url: str = Field(min_length=1)
    headers: dict[str, str] | None = None

    model_config = {"frozen": True}


class SseServer(BaseModel):
    """A remote server reached over server-sent events."""

    type: Literal["sse"] = "sse"
    url: str = Field(min_length=1)
    headers: dict[str, str] | None = None

    model_config = {"frozen": True}


ServerDefinition = Annotated[
    Union[StdioServer, HttpServer, SseServer],
    Field(discriminator="type"),
]

# Server name -> canonical definition.  Names are case-sensitive.
Registry = dict[str, ServerDefinition]


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


class ClientType(str, Enum):
    """Clients whose configuration documents are managed."""

    CODE = "code"
    DESKTOP = "desktop"

    @property
    def label(self) -> str:
        """Human-readable client name."""
        return _CLIENT_LABELS[self]


_CLIENT_LABELS = {
    ClientType.CODE: "Claude Code",
    ClientType.DESKTOP: "Claude Desktop",
}

# Fixed processing order; decides conflict attribution.
CLIENT_ORDER: tuple[ClientType, ...] = (ClientType.CODE, ClientType.DESKTOP)


class ClientState(BaseModel):
    """Names currently enabled in each client document.

    A snapshot taken once per operation; never refreshed mid-operation.
    """

    code: tuple[str, ...] = ()
    desktop: tuple[str, ...] = ()

    model_config = {"frozen": True}

    def enabled(self, client: ClientType) -> tuple[str, ...]:
        """Return the names enabled in *client*, in document order."""
        if client is ClientType.CODE:
            return self.code
        return self.desktop

    def is_enabled(self, client: ClientType, name: str) -> bool:
        return name in self.enabled(client)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


class ImportRecord(BaseModel):
    """A client-only definition that was added to the registry."""

    server_name: str
    client: ClientType
    definition: ServerDefinition

    model_config = {"frozen": True}


class Conflict(BaseModel):
    """A client definition that differs from the registry's.

    Attributes:
        server_name: Name shared by both definitions.
        registry_definition: The registry's current definition.
        client_definition: The diverging definition found in the client.
        client: The client the divergent definition came from.
    """

    server_name: str
    registry_definition: ServerDefinition
    client_definition: ServerDefinition
    client: ClientType

    model_config = {"frozen": True}


class Resolution(str, Enum):
    """Possible answers to a conflict."""

    KEEP_REGISTRY = "keep-registry"
    USE_CLIENT = "use-client"
    SKIP = "skip"


class ResolvedServer(BaseModel):
    """A registry entry to overwrite as the result of a conflict."""

    server_name: str
    definition: ServerDefinition

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


class ApplyResult(BaseModel):
    """Result of rebuilding one client's server map.

    Attributes:
        client: The client that was written.
        success: Whether the document was persisted.
        written: Names written to the document, in selection order.
        dropped: Selected names the client cannot run.
        missing: Selected names absent from the registry.
        error: Error message if the write failed.
    """

    client: ClientType
    success: bool
    written: list[str] = []
    dropped: list[str] = []
    missing: list[str] = []
    error: str | None = None

    model_config = {"frozen": True}


class ApplyReport(BaseModel):
    """Aggregate outcome of applying the registry to several clients."""

    results: list[ApplyResult] = []

    model_config = {"frozen": True}

    @property
    def failed(self) -> list[ApplyResult]:
        """Results whose write failed."""
        return [r for r in self.results if not r.success]

    @property
    def succeeded(self) -> list[ApplyResult]:
        """Results whose write succeeded."""
        return [r for r in self.results if r.success]

    @property
    def partial(self) -> bool:
        """True when some clients were written and others were not."""
        return bool(self.failed) and bool(self.succeeded)

    def for_client(self, client: ClientType) -> ApplyResult | None:
        for result in self.results:
            if result.client is client:
                return result
        return None
