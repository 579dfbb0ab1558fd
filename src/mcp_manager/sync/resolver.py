"""Conflict resolution strategies for the sync engine.

Provides the conflict resolution approaches:

- ``InteractiveResolver``: shows both definitions and asks the user.
- ``KeepRegistryResolver``: always keeps the registry definition.
- ``UseClientResolver``: always takes the client definition.
- ``SkipResolver``: leaves every conflict for a later run.

``resolve_conflicts()`` runs a resolver over a pass's conflicts and
collects the registry entries to overwrite.  ``keep-registry`` and
``skip`` both leave the registry untouched; they differ only in how the
decision is reported.

The ``create_resolver()`` factory maps strategy strings to resolver
instances.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence, assert_never

from mcp_manager.prompts import Choice, Prompter
from mcp_manager.sync.models import Conflict, Resolution, ResolvedServer
from mcp_manager.sync.reporter import format_conflict

logger = logging.getLogger(__name__)


class ConflictResolver(Protocol):
    """Protocol that all conflict resolvers must satisfy."""

    def choose(self, conflict: Conflict) -> Resolution:
        """Decide how *conflict* is resolved.

        Raises:
            UserCancelled: If an interactive prompt is interrupted.
        """
        ...  # pragma: no cover


class InteractiveResolver:
    """Resolve conflicts by asking the user, one conflict at a time.

    Args:
        prompter: Prompt implementation used to ask the question.
        echo: Callable used to show the conflict before asking.
    """

    def __init__(
        self, prompter: Prompter, echo: Callable[[str], None] = print
    ) -> None:
        self.prompter = prompter
        self.echo = echo

    def choose(self, conflict: Conflict) -> Resolution:
        self.echo(format_conflict(conflict))
        return self.prompter.select_one(
            f"How should '{conflict.server_name}' be resolved?",
            [
                Choice("Keep registry version", Resolution.KEEP_REGISTRY),
                Choice(
                    f"Use {conflict.client.label} version",
                    Resolution.USE_CLIENT,
                ),
                Choice("Skip for now", Resolution.SKIP),
            ],
        )


class KeepRegistryResolver:
    """Always keep the registry definition."""

    def choose(self, conflict: Conflict) -> Resolution:
        return Resolution.KEEP_REGISTRY


class UseClientResolver:
    """Always replace the registry definition with the client's."""

    def choose(self, conflict: Conflict) -> Resolution:
        return Resolution.USE_CLIENT


class SkipResolver:
    """Leave every conflict unresolved."""

    def choose(self, conflict: Conflict) -> Resolution:
        return Resolution.SKIP


@dataclass
class ResolutionOutcome:
    """Decisions taken for one pass's conflicts.

    Attributes:
        resolved: Registry entries to overwrite, in conflict order.
        decisions: Server name -> chosen resolution.
    """

    resolved: list[ResolvedServer] = field(default_factory=list)
    decisions: dict[str, Resolution] = field(default_factory=dict)

    @property
    def skipped(self) -> list[str]:
        """Names whose conflict was skipped."""
        return [
            name
            for name, resolution in self.decisions.items()
            if resolution is Resolution.SKIP
        ]


def resolve_conflicts(
    conflicts: Sequence[Conflict], resolver: ConflictResolver
) -> ResolutionOutcome:
    """Ask *resolver* about each conflict and collect the overwrites.

    Args:
        conflicts: Conflicts in detection order.
        resolver: Strategy that picks a resolution per conflict.

    Returns:
        A ``ResolutionOutcome``; only ``use-client`` answers contribute to
        ``resolved``.

    Raises:
        UserCancelled: If the resolver's prompt is interrupted; nothing
            collected so far is applied.
    """
    outcome = ResolutionOutcome()
    for conflict in conflicts:
        resolution = Resolution(resolver.choose(conflict))
        outcome.decisions[conflict.server_name] = resolution
        match resolution:
            case Resolution.USE_CLIENT:
                outcome.resolved.append(
                    ResolvedServer(
                        server_name=conflict.server_name,
                        definition=conflict.client_definition,
                    )
                )
                logger.info(
                    "Conflict '%s': using %s version",
                    conflict.server_name,
                    conflict.client.label,
                )
            case Resolution.KEEP_REGISTRY:
                logger.info(
                    "Conflict '%s': keeping registry version",
                    conflict.server_name,
                )
            case Resolution.SKIP:
                logger.info("Conflict '%s': skipped", conflict.server_name)
            case _:
                assert_never(resolution)
    return outcome


_STRATEGY_MAP: dict[str, type] = {
    "keep-registry": KeepRegistryResolver,
    "use-client": UseClientResolver,
    "skip": SkipResolver,
}

STRATEGIES: tuple[str, ...] = ("interactive", *_STRATEGY_MAP)


def create_resolver(
    strategy: str,
    prompter: Prompter | None = None,
    echo: Callable[[str], None] = print,
) -> ConflictResolver:
    """Create a conflict resolver for the given strategy string.

    Args:
        strategy: One of ``"interactive"``, ``"keep-registry"``,
            ``"use-client"``, ``"skip"``.
        prompter: Required for ``"interactive"``.
        echo: Output callable for ``"interactive"``.

    Returns:
        A ``ConflictResolver`` implementation instance.

    Raises:
        ValueError: If the strategy string is not recognised, or
            ``"interactive"`` is requested without a prompter.
    """
    if strategy == "interactive":
        if prompter is None:
            raise ValueError("The interactive strategy needs a prompter")
        return InteractiveResolver(prompter, echo=echo)
    cls = _STRATEGY_MAP.get(strategy)
    if cls is None:
        raise ValueError(
            f"Unknown conflict strategy: '{strategy}'. Valid strategies: {sorted(STRATEGIES)}"
        )
    return cls()  # type: ignore[return-value]
