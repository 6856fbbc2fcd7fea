"""CLI command groups."""

from gemini_mcp.cli.commands.cache import cache

__all__ = ["cache"]
