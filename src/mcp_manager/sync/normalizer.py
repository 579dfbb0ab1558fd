"""Canonicalisation and comparison of raw server definitions.

``normalize_server`` turns whatever a client document holds for one server
into a canonical ``ServerDefinition`` (or rejects it); ``definitions_equal``
decides whether two canonical definitions describe the same server; and
``dump_server`` is the inverse used when writing documents.

Rules applied by ``normalize_server``, in order:

1. ``type == "http"`` with a string ``url`` -> ``HttpServer``.
2. ``type == "sse"`` with a string ``url`` -> ``SseServer``.
3. A string ``command`` -> ``StdioServer``; non-string ``args`` entries are
   dropped.
4. Anything else -> ``None``.

String maps (``headers``, ``env``) keep only their string-valued entries.
"""

from __future__ import annotations

import logging
from typing import Any, assert_never

from mcp_manager.sync.models import (
    HttpServer,
    ServerDefinition,
    SseServer,
    StdioServer,
)

logger = logging.getLogger(__name__)


def _string_map(value: Any) -> dict[str, str] | None:
    """Return the string-valued entries of *value* if it is a mapping."""
    if not isinstance(value, dict):
        return None
    return {
        k: v
        for k, v in value.items()
        if isinstance(k, str) and isinstance(v, str)
    }


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def normalize_server(raw: Any) -> ServerDefinition | None:
    """Convert an untyped server record into a canonical definition.

    Never raises: every input yields either a definition satisfying its
    variant's invariant or ``None``.

    Args:
        raw: A value read from a JSON document.

    Returns:
        ``StdioServer``, ``HttpServer`` or ``SseServer``, or ``None`` when
        the record matches no shape.
    """
    if not isinstance(raw, dict):
        return None

    kind = raw.get("type")
    url = raw.get("url")

    if kind == "http" and _non_empty_string(url):
        return HttpServer(url=url, headers=_string_map(raw.get("headers")))

    if kind == "sse" and _non_empty_string(url):
        return SseServer(url=url, headers=_string_map(raw.get("headers")))

    command = raw.get("command")
    if _non_empty_string(command):
        args = raw.get("args")
        return StdioServer(
            command=command,
            args=(
                [a for a in args if isinstance(a, str)]
                if isinstance(args, list)
                else None
            ),
            env=_string_map(raw.get("env")),
        )

    return None


def _same(a: Any, b: Any) -> bool:
    """Compare optional containers, treating absent and empty alike."""
    return (a or None) == (b or None)


def definitions_equal(a: ServerDefinition, b: ServerDefinition) -> bool:
    """Return ``True`` if *a* and *b* describe the same server.

    Variant tags must match; ``args`` compare in order, ``headers`` and
    ``env`` compare as key/value sets.  An absent ``args``, ``env`` or
    ``headers`` equals an empty one.
    """
    match a:
        case StdioServer():
            return (
                isinstance(b, StdioServer)
                and a.command == b.command
                and _same(a.args, b.args)
                and _same(a.env, b.env)
            )
        case HttpServer():
            return (
                isinstance(b, HttpServer)
                and a.url == b.url
                and _same(a.headers, b.headers)
            )
        case SseServer():
            return (
                isinstance(b, SseServer)
                and a.url == b.url
                and _same(a.headers, b.headers)
            )
        case _:
            assert_never(a)


def dump_server(
    definition: ServerDefinition, include_type: bool = True
) -> dict[str, Any]:
    """Serialize *definition* into its document form.

    Absent optional fields are omitted.  ``include_type=False`` produces the
    tagless stdio shape used by clients that only run local servers.
    """
    data = definition.model_dump(exclude_none=True)
    if not include_type:
        data.pop("type", None)
    return data
