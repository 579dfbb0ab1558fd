"""Unified configuration schema for mcp_manager.

Defines Pydantic models for the YAML config structure with dedicated
sections for document paths and logging, plus an adapter that resolves
them into the ``Config`` dataclass.

Usage:
    from mcp_manager.config_schema import build_config, to_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = to_config(unified, cli_overrides={"registry": "~/reg.json"})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class PathsConfig(BaseModel):
    """Document locations.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime, and built-in defaults cover the rest.
    """

    registry: str | None = Field(
        default=None, description="Registry document path"
    )
    code: str | None = Field(
        default=None, description="Claude Code config path"
    )
    desktop: str | None = Field(
        default=None, description="Claude Desktop config path"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True, "extra": "forbid"}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="WARNING", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True, "extra": "forbid"}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True, "extra": "forbid"}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.

    Raises:
        pydantic.ValidationError: If a section has unknown or mistyped keys.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Resolve a ``UnifiedConfig`` plus CLI overrides into ``Config``.

    CLI overrides dict keys: registry, code, desktop, debug.

    Args:
        unified: The unified config produced by ``build_config()``.
        cli_overrides: Optional dict of CLI argument values.

    Returns:
        Validated ``Config`` dataclass instance.
    """
    from .config import load_config

    overrides = cli_overrides or {}

    return load_config(
        registry=overrides.get("registry"),
        code=overrides.get("code"),
        desktop=overrides.get("desktop"),
        debug=overrides.get("debug", False),
        yaml_fallbacks=unified.paths.model_dump(exclude_none=True),
    )
