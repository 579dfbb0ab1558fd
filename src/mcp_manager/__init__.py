"""Keep MCP server definitions in one registry and sync them to clients."""

__version__ = "0.1.0"
