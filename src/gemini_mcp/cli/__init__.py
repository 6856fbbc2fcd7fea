"""JSON-first command line interface for the gemini-mcp chunk cache."""

from gemini_mcp.cli.main import cli

__all__ = ["cli"]
