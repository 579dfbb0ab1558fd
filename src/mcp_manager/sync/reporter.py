"""Report formatting functions.

Provides human-readable output for registry operations:

- ``format_definition`` -- the fields of one server definition.
- ``format_conflict`` -- registry and client versions side by side.
- ``format_status`` -- per-client enablement table for ``list``.
- ``format_reconcile_summary`` -- imports and conflicts of a pass.
- ``format_apply_report`` -- per-client outcome of an apply.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from .models import (
    CLIENT_ORDER,
    HttpServer,
    SseServer,
    StdioServer,
)

if TYPE_CHECKING:
    from pathlib import Path

    from .engine import ReconcileResult
    from .models import (
        ApplyReport,
        ClientState,
        Conflict,
        Registry,
        ServerDefinition,
    )

ENABLED_MARK = "✅"
DISABLED_MARK = "❌"


def format_definition(definition: ServerDefinition) -> list[str]:
    """Render a definition as ``Label: value`` lines.

    Optional fields that are absent are left out.
    """
    lines = [f"Type: {definition.type}"]
    match definition:
        case StdioServer():
            lines.append(f"Command: {definition.command}")
            if definition.args:
                lines.append(f"Args: {' '.join(definition.args)}")
            if definition.env:
                lines.append("Env:")
                lines.extend(
                    f"  {key}={value}"
                    for key, value in definition.env.items()
                )
        case HttpServer() | SseServer():
            lines.append(f"URL: {definition.url}")
            if definition.headers:
                lines.append("Headers:")
                lines.extend(
                    f"  {key}: {value}"
                    for key, value in definition.headers.items()
                )
        case _:
            assert_never(definition)
    return lines


def format_conflict(conflict: Conflict) -> str:
    """Format a conflict for interactive review."""
    lines = [
        f"Conflict for server '{conflict.server_name}' "
        f"({conflict.client.label} differs from registry)",
        "",
        "  Registry:",
    ]
    lines.extend(
        f"    {line}"
        for line in format_definition(conflict.registry_definition)
    )
    lines.append("")
    lines.append(f"  {conflict.client.label}:")
    lines.extend(
        f"    {line}"
        for line in format_definition(conflict.client_definition)
    )
    return "\n".join(lines)


def format_status(
    registry: Registry, state: ClientState, registry_path: Path
) -> str:
    """Format the enablement table printed by ``list``."""
    if not registry:
        return "No MCP servers found. Run with no arguments to initialize."

    names = sorted(registry)
    width = max(len(name) for name in names)
    lines = ["MCP Server Status", ""]
    for name in names:
        cells = [name.ljust(width)]
        for client in CLIENT_ORDER:
            mark = (
                ENABLED_MARK
                if state.is_enabled(client, name)
                else DISABLED_MARK
            )
            short = client.label.removeprefix("Claude ")
            cells.append(f"{short}: {mark}")
        lines.append("  " + " │ ".join(cells))
    lines.append("")
    lines.append(f"Total: {len(names)} servers │ Registry: {registry_path}")
    return "\n".join(lines)


def format_reconcile_summary(result: ReconcileResult) -> str:
    """Summarise imports and conflicts of one pass."""
    lines = [
        f"Imported server '{r.server_name}' from {r.client.label}"
        for r in result.imported
    ]
    if result.conflicts:
        lines.append(
            f"{len(result.conflicts)} conflict(s) need a decision: "
            + ", ".join(c.server_name for c in result.conflicts)
        )
    if not lines:
        lines.append("Registry is up to date.")
    return "\n".join(lines)


def format_apply_report(report: ApplyReport) -> str:
    """One line per client with what was written, dropped, or failed."""
    lines: list[str] = []
    for result in report.results:
        label = result.client.label
        if not result.success:
            lines.append(f"{label}: failed ({result.error})")
            continue
        line = f"{label}: {len(result.written)} servers enabled"
        if result.dropped:
            line += f", skipped unsupported: {', '.join(result.dropped)}"
        lines.append(line)
    return "\n".join(lines)
