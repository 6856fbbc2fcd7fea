"""Gemini MCP - MCP server with a disk-backed cache for chunked edit results."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("gemini-mcp")
except PackageNotFoundError:
    # Package not installed (development mode without editable install)
    __version__ = "0.3.0"

from gemini_mcp.server import create_server, main

__all__ = ["__version__", "create_server", "main"]
