"""Command line entry points.

Commands:

- *(none)* -- interactive: import, resolve, then pick servers per client.
- ``list`` -- show every registry server and where it is enabled.
- ``sync`` / ``init`` -- import and resolve, then offer to re-apply the
  registry to both clients.

Exit status: 0 on success, 1 on application errors, 130 when a prompt is
cancelled.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Mapping, Sequence

import click
import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config
from .config_loader import load_hierarchical_config
from .config_schema import build_config, to_config
from .exceptions import ApplyFailed, McpManagerError, UserCancelled
from .logger import setup_logging
from .prompts import Choice, ClickPrompter, Prompter
from .sync.apply import ApplyEngine, build_client_options
from .sync.engine import ReconcileEngine, ReconcileResult
from .sync.models import CLIENT_ORDER, ClientType
from .sync.reporter import (
    format_apply_report,
    format_reconcile_summary,
    format_status,
)
from .sync.resolver import STRATEGIES, create_resolver, resolve_conflicts
from .sync.state import (
    ClientStore,
    RegistryStore,
    build_stores,
    load_client_state,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


@dataclass
class Session:
    """Everything one command invocation works with."""

    config: Config
    registry_store: RegistryStore
    clients: Mapping[ClientType, ClientStore]
    prompter: Prompter

    @classmethod
    def from_config(cls, config: Config, prompter: Prompter) -> Session:
        registry_store, clients = build_stores(config)
        return cls(config, registry_store, clients, prompter)

    @property
    def engine(self) -> ReconcileEngine:
        return ReconcileEngine(self.registry_store, self.clients)

    @property
    def apply_engine(self) -> ApplyEngine:
        return ApplyEngine(self.clients)


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


def reconcile_and_resolve(
    session: Session,
    strategy: str = "interactive",
    apply_mode: str = "ask",
) -> ReconcileResult:
    """Import new servers, resolve conflicts, and optionally re-apply.

    Args:
        session: The invocation's stores and prompter.
        strategy: Conflict strategy name (see ``create_resolver``).
        apply_mode: ``"ask"``, ``"yes"`` or ``"no"`` -- how to answer the
            offer to push a resolved registry to every client.

    Returns:
        The reconcile result, with resolutions folded into its registry.

    Raises:
        UserCancelled: If a prompt is interrupted before anything is written.
        DestinationWriteFailed: If the registry cannot be written.
        ApplyFailed: If any client write fails during the re-apply.
    """
    engine = session.engine
    result = engine.reconcile()
    click.echo(format_reconcile_summary(result))

    resolver = create_resolver(strategy, session.prompter, echo=click.echo)
    outcome = resolve_conflicts(result.conflicts, resolver)

    if engine.commit(result, outcome.resolved):
        click.echo(
            f"Updated registry with {len(result.registry)} servers"
        )

    if not outcome.resolved:
        return result

    if apply_mode == "ask":
        push = session.prompter.confirm(
            "Apply the resolved registry to all clients?", default=True
        )
    else:
        push = apply_mode == "yes"
    if not push:
        return result

    report = session.apply_engine.apply_to_all_clients(
        result.registry, result.state
    )
    click.echo(format_apply_report(report))
    if report.failed:
        raise ApplyFailed(report)
    return result


def interactive(session: Session) -> int:
    """Import, then let the user choose which servers a client enables."""
    click.echo("MCP Server Manager\n")
    click.echo("Scanning configurations...")

    result = reconcile_and_resolve(session)
    registry = result.registry

    if not registry:
        click.echo("No MCP servers found in any configuration.")
        click.echo(
            "Add servers to Claude Code or Claude Desktop first, "
            "then run this tool again."
        )
        return EXIT_OK

    click.echo(f"Found {len(registry)} servers in registry\n")
    state = load_client_state(session.clients)

    client = session.prompter.select_one(
        "Which client do you want to configure?",
        [Choice(label=c.label, value=c) for c in CLIENT_ORDER],
    )

    options = build_client_options(registry, state, client)
    if not options:
        click.echo(f"No compatible MCP servers found for {client.label}.")
        if client is ClientType.DESKTOP:
            click.echo("Note: Claude Desktop only supports stdio servers.")
        return EXIT_OK

    selections = session.prompter.select_many(
        f"Select MCP servers to enable for {client.label}:", options
    )

    click.echo("\nApplying changes...")
    applied = session.apply_engine.apply_to_client(
        registry, client, selections
    )

    click.echo("Configuration updated!")
    click.echo(f"   {client.label}: {len(applied.written)} servers enabled")
    if applied.written:
        click.echo(f"\nRestart {client.label} to apply changes.")
    return EXIT_OK


def list_servers(session: Session) -> int:
    """Print the registry and per-client enablement. Never writes."""
    registry = session.registry_store.load()
    state = load_client_state(session.clients)
    click.echo(
        format_status(registry, state, session.config.registry_path)
    )
    return EXIT_OK


def sync(
    session: Session,
    strategy: str = "interactive",
    apply_mode: str = "ask",
    banner: str = "Syncing MCP server configurations...",
    done: str = "Sync completed!",
) -> int:
    """Import and resolve without per-server selection."""
    click.echo(f"{banner}\n")
    reconcile_and_resolve(session, strategy=strategy, apply_mode=apply_mode)
    click.echo(f"\n{done}")
    return EXIT_OK


def init(
    session: Session, strategy: str = "interactive", apply_mode: str = "ask"
) -> int:
    """Create or update the registry from the client documents."""
    return sync(
        session,
        strategy=strategy,
        apply_mode=apply_mode,
        banner="Initializing MCP registry...",
        done="Registry initialized!",
    )


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--registry",
        default=argparse.SUPPRESS,
        help="Registry document path (overrides MCP_MANAGER_REGISTRY and config files)",
    )
    common.add_argument(
        "--code-config",
        default=argparse.SUPPRESS,
        help="Claude Code config path (overrides MCP_MANAGER_CODE_CONFIG)",
    )
    common.add_argument(
        "--desktop-config",
        default=argparse.SUPPRESS,
        help="Claude Desktop config path (overrides MCP_MANAGER_DESKTOP_CONFIG)",
    )
    common.add_argument(
        "--debug",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enable debug logging",
    )
    common.add_argument(
        "--log-file",
        default=argparse.SUPPRESS,
        help="Also append log records to this file",
    )
    common.add_argument(
        "--debug-format",
        choices=["text", "json"],
        default=argparse.SUPPRESS,
        help="Log record format (default: text)",
    )

    parser = argparse.ArgumentParser(
        prog="mcp-manager",
        description="Manage MCP server configurations across Claude Code and Claude Desktop",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        parents=[common],
        epilog="""
Examples:
  # Pick which servers a client enables
  mcp-manager

  # Show every server and where it is enabled
  mcp-manager list

  # Import from both clients, keep registry versions on conflict,
  # and push the result back without asking
  mcp-manager sync --strategy keep-registry --yes
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"mcp-manager version {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser(
        "list",
        parents=[common],
        help="Show all MCP servers and their current status",
    )
    for name, help_text in (
        ("sync", "Sync and import servers from client configurations"),
        ("init", "Initialize or update the MCP registry"),
    ):
        sub = subparsers.add_parser(name, parents=[common], help=help_text)
        sub.add_argument(
            "--strategy",
            choices=STRATEGIES,
            default="interactive",
            help="How to resolve conflicts (default: interactive)",
        )
        apply_group = sub.add_mutually_exclusive_group()
        apply_group.add_argument(
            "--yes",
            dest="apply_mode",
            action="store_const",
            const="yes",
            help="Apply a resolved registry to all clients without asking",
        )
        apply_group.add_argument(
            "--no-apply",
            dest="apply_mode",
            action="store_const",
            const="no",
            help="Never apply the registry to clients",
        )
        sub.set_defaults(apply_mode="ask")
    return parser


def _load_session(args: argparse.Namespace, prompter: Prompter) -> Session:
    unified = build_config(load_hierarchical_config())
    config = to_config(
        unified,
        cli_overrides={
            "registry": getattr(args, "registry", None),
            "code": getattr(args, "code_config", None),
            "desktop": getattr(args, "desktop_config", None),
            "debug": getattr(args, "debug", False),
        },
    )
    setup_logging(
        debug=config.debug,
        log_file=getattr(args, "log_file", None) or unified.logging.file,
        debug_format=getattr(args, "debug_format", "text"),
        level=unified.logging.level,
    )
    return Session.from_config(config, prompter)


def main(
    argv: Sequence[str] | None = None, prompter: Prompter | None = None
) -> int:
    """Parse *argv*, run the command, and return the exit status."""
    args = _build_parser().parse_args(argv)
    load_dotenv()

    try:
        session = _load_session(args, prompter or ClickPrompter())
    except (ValueError, OSError, yaml.YAMLError) as exc:
        click.echo(f"Error: invalid configuration: {exc}", err=True)
        return EXIT_ERROR

    try:
        match args.command:
            case None:
                return interactive(session)
            case "list":
                return list_servers(session)
            case "sync":
                return sync(session, args.strategy, args.apply_mode)
            case "init":
                return init(session, args.strategy, args.apply_mode)
            case _:
                raise AssertionError(f"Unhandled command: {args.command}")
    except UserCancelled as exc:
        click.echo(f"\n{exc}", err=True)
        return EXIT_CANCELLED
    except McpManagerError as exc:
        logger.error("%s", exc)
        click.echo(f"Error: {exc}", err=True)
        return EXIT_ERROR


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
