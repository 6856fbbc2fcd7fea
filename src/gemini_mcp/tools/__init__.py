"""MCP tool registration for gemini-mcp."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .chunks import register_chunk_tools

if TYPE_CHECKING:  # pragma: no cover - import-time typing only
    from mcp.server.fastmcp import FastMCP
    from gemini_mcp.config import ServerConfig
    from gemini_mcp.core.chunk_cache import ChunkCache


def register_tools(mcp: "FastMCP", config: "ServerConfig", cache: "ChunkCache") -> None:
    """Register all tools."""
    register_chunk_tools(mcp, config, cache)


__all__ = ["register_tools", "register_chunk_tools"]
