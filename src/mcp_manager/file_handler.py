"""Document I/O: encoding-aware JSON reads and atomic JSON writes.

Reads never fail: a missing or malformed document is replaced by the
caller's default and reported with a warning.  Writes either fully
replace the destination or raise ``DestinationWriteFailed``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from charset_normalizer import from_bytes

from mcp_manager.exceptions import DestinationWriteFailed

logger = logging.getLogger(__name__)


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding.replace("_", "-"))


def read_json_document(path: Path) -> dict[str, Any] | None:
    """Load a JSON object from *path*.

    Args:
        path: Document location.

    Returns:
        The parsed object, or ``None`` when the document is missing,
        unreadable, not valid JSON, or its root is not an object.  Every
        ``None`` is accompanied by a warning.
    """
    if not path.exists():
        logger.warning("Could not read %s: file not found", path)
        return None

    try:
        content, _ = read_file_with_encoding(path)
        data = json.loads(content.lstrip("\ufeff"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None

    if not isinstance(data, dict):
        logger.warning(
            "Could not read %s: expected a JSON object, got %s",
            path,
            type(data).__name__,
        )
        return None
    return data


def dump_json_document(data: dict[str, Any]) -> str:
    """Serialize *data* as pretty-printed JSON with a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json_document(path: Path, data: dict[str, Any]) -> int:
    """Persist *data* to *path* atomically.

    Writes to a temporary file in the destination directory and then
    replaces the target, creating missing parent directories first.

    Args:
        path: Destination document.
        data: JSON-serializable object.

    Returns:
        Number of bytes written.

    Raises:
        DestinationWriteFailed: If the directory or file cannot be written.
    """
    encoded = dump_json_document(data).encode("utf-8")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as exc:
        raise DestinationWriteFailed(path, str(exc)) from exc

    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
        os.replace(tmp_path, path)
    except BaseException as exc:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        if isinstance(exc, OSError):
            raise DestinationWriteFailed(path, str(exc)) from exc
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)
