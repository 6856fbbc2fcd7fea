"""FastMCP server for gemini-mcp.

Exposes the chunk retrieval tools (``fetch-chunk``, ``chunk-cache``) over
stdio. One ChunkCache is built from the server configuration at startup
and shared by every tool.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP

from gemini_mcp.config import ServerConfig, get_config
from gemini_mcp.core.chunk_cache import ChunkCache
from gemini_mcp.tools import register_tools

logger = logging.getLogger(__name__)


def create_server(
    config: Optional[ServerConfig] = None,
    cache: Optional[ChunkCache] = None,
) -> FastMCP:
    """Create and configure the FastMCP server instance."""

    if config is None:
        config = get_config()

    config.setup_logging()

    if cache is None:
        cache = ChunkCache(config.chunk_cache)

    mcp = FastMCP(name=config.server_name)
    register_tools(mcp, config, cache)

    logger.info(
        "Server created: %s v%s (chunk cache: ttl=%ss max_files=%s)",
        config.server_name,
        config.server_version,
        config.chunk_cache.ttl_seconds,
        config.chunk_cache.max_files,
    )
    return mcp


def main() -> None:
    """Main entry point for the gemini-mcp server."""

    try:
        config = get_config()
        server = create_server(config)

        logger.info("Starting %s v%s", config.server_name, config.server_version)
        server.run()

    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        sys.exit(0)
    except BaseException as exc:
        logger.error("Server error: %s: %s", type(exc).__name__, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
