from mcp_manager.cli import run

run()
