"""Exception hierarchy for mcp_manager.

Unreadable source documents and entries that fail normalization are not
exceptions: readers substitute an empty default and log a warning, and the
normalizer returns ``None``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .sync.models import ApplyReport


class McpManagerError(Exception):
    """Base class for all application errors."""


class DestinationWriteFailed(McpManagerError):
    """A document could not be persisted.

    Attributes:
        path: The destination that could not be written.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


class UserCancelled(Exception):
    """A prompt was interrupted (Ctrl+C or end of input).

    Not an ``McpManagerError``: cancelling is not an application error.
    """

    def __init__(self, message: str = "Operation cancelled.") -> None:
        super().__init__(message)


class ApplyFailed(McpManagerError):
    """At least one client write failed during an apply.

    Attributes:
        report: Per-client outcomes, including the ones that succeeded.
    """

    def __init__(self, report: ApplyReport) -> None:
        self.report = report
        failed = ", ".join(r.client.label for r in report.failed)
        super().__init__(f"Failed to update: {failed}")
