"""
YAML config file discovery and merging for mcp_manager.

Three locations are searched, highest precedence first:

1. the file named by ``MCP_MANAGER_CONFIG``
2. ``.mcp_manager/config.yml`` under the working directory
3. ``~/.config/mcp_manager/config.yml``

Top-level sections from a higher-precedence file replace the same
sections from lower ones ("project wins").  ``${VAR}`` and
``${VAR:-default}`` references in string values are expanded after the
merge.

Usage:
    from mcp_manager.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MCP_MANAGER_CONFIG"
PROJECT_CONFIG = Path(".mcp_manager") / "config.yml"
USER_CONFIG = Path(".config") / "mcp_manager" / "config.yml"

# ${NAME} or ${NAME:-fallback}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` references in *value*.

    An unset or empty variable expands to its fallback, or to ``""`` when
    there is none.  Text such as ``${OPEN`` without a closing brace is
    kept as is.
    """

    def _expand(match: re.Match) -> str:
        name, fallback = match.groups()
        return os.environ.get(name) or fallback or ""

    return _ENV_VAR_PATTERN.sub(_expand, value)


def _interpolate_recursive(obj: Any) -> Any:
    """Apply ``interpolate_env_vars`` to every string inside *obj*."""
    match obj:
        case str():
            return interpolate_env_vars(obj)
        case dict():
            return {key: _interpolate_recursive(v) for key, v in obj.items()}
        case list():
            return [_interpolate_recursive(item) for item in obj]
        case _:
            return obj


def discover_config_files() -> list[Path]:
    """Return the config files that exist, highest precedence first."""
    candidates: list[Path] = []

    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())
    candidates.append(Path.cwd() / PROJECT_CONFIG)
    candidates.append(Path.home() / USER_CONFIG)

    found = [path for path in candidates if path.exists()]
    logger.debug("Config files found: %s", found)
    return found


def _read_yaml(path: Path) -> dict[str, Any]:
    """Parse one config file; a non-mapping root is ignored with a warning.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
    """
    logger.debug("Loading config: %s", path)
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Config file %s has non-dict root (%s), skipping",
            path,
            type(data).__name__,
        )
        return {}
    return data


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one raw dict.

    Returns:
        The merged sections with env references expanded, or ``{}`` when
        no config file exists.

    Raises:
        OSError: If a discovered file cannot be read.
        yaml.YAMLError: If a discovered file is not valid YAML.
    """
    merged: dict[str, Any] = {}
    # Lowest precedence first so later files overwrite earlier sections.
    for path in reversed(discover_config_files()):
        merged.update(_read_yaml(path))
    return _interpolate_recursive(merged)
