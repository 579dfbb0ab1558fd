"""Document locations for the registry and the two clients.

Reads paths from CLI args, environment variables, .env files, and YAML
config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    MCP_MANAGER_REGISTRY: Registry document path (default: ~/.mcp.json)
    MCP_MANAGER_CODE_CONFIG: Claude Code config path (default: ~/.claude.json)
    MCP_MANAGER_DESKTOP_CONFIG: Claude Desktop config path (platform default)
    MCP_MANAGER_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DESKTOP_CONFIG_NAME = "claude_desktop_config.json"
_TRUTHY = ("true", "1", "yes", "on")


@dataclass
class Config:
    registry_path: Path
    code_path: Path
    desktop_path: Path
    debug: bool = False


def default_desktop_path(platform: str | None = None) -> Path:
    """Return the Claude Desktop config location for *platform*.

    Args:
        platform: A ``sys.platform`` value. Defaults to the running platform.
    """
    platform = platform or sys.platform
    home = Path.home()
    if platform == "darwin":
        return (
            home
            / "Library"
            / "Application Support"
            / "Claude"
            / DESKTOP_CONFIG_NAME
        )
    if platform == "win32":
        appdata = os.getenv("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / "Claude" / DESKTOP_CONFIG_NAME
    return home / ".config" / "Claude" / DESKTOP_CONFIG_NAME


def default_paths() -> dict[str, Path]:
    """Built-in document locations keyed by ``registry``/``code``/``desktop``."""
    home = Path.home()
    return {
        "registry": home / ".mcp.json",
        "code": home / ".claude.json",
        "desktop": default_desktop_path(),
    }


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If two roles point at the same document or a path is
            an existing directory.
    """
    roles = {
        "registry": config.registry_path,
        "code": config.code_path,
        "desktop": config.desktop_path,
    }
    seen: dict[Path, str] = {}
    for role, path in roles.items():
        resolved = path.resolve()
        if resolved in seen:
            raise ValueError(
                f"The {role} and {seen[resolved]} documents must be different files: {path}"
            )
        seen[resolved] = role
        if path.is_dir():
            raise ValueError(
                f"Invalid {role} path '{path}': is a directory"
            )


def load_config(
    registry: str | None = None,
    code: str | None = None,
    desktop: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        registry: Override registry path.
        code: Override Claude Code config path.
        desktop: Override Claude Desktop config path.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML config ``paths`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If the resolved paths are unusable.
    """
    fb = yaml_fallbacks or {}
    defaults = default_paths()

    def resolve_path(cli_value: str | None, env_key: str, key: str) -> Path:
        raw = cli_value or os.getenv(env_key) or fb.get(key)
        if not raw:
            return defaults[key]
        return Path(str(raw).strip()).expanduser()

    env_debug = os.getenv("MCP_MANAGER_DEBUG")
    final_debug = debug or (
        env_debug.lower() in _TRUTHY
        if env_debug is not None
        else bool(fb.get("debug", False))
    )

    config = Config(
        registry_path=resolve_path(registry, "MCP_MANAGER_REGISTRY", "registry"),
        code_path=resolve_path(code, "MCP_MANAGER_CODE_CONFIG", "code"),
        desktop_path=resolve_path(
            desktop, "MCP_MANAGER_DESKTOP_CONFIG", "desktop"
        ),
        debug=final_debug,
    )

    validate_config(config)
    logger.debug(
        "Using registry=%s code=%s desktop=%s",
        config.registry_path,
        config.code_path,
        config.desktop_path,
    )

    return config
