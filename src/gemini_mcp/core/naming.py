"""Naming helpers for MCP tool registration."""

from __future__ import annotations

import functools
import json
import logging
from typing import Any, Callable

from mcp.server.fastmcp import FastMCP
from mcp.types import TextContent

from gemini_mcp.core.context import sync_request_context
from gemini_mcp.core.observability import log_tool_invocation

logger = logging.getLogger(__name__)


def _minify_response(result: dict[str, Any]) -> TextContent:
    """Convert dict to TextContent with minified JSON."""
    return TextContent(
        type="text",
        text=json.dumps(result, separators=(",", ":"), default=str),
    )


def canonical_tool(
    mcp: FastMCP,
    *,
    canonical_name: str,
    log_prompts: bool = False,
    **tool_kwargs: Any,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator that registers a tool under its canonical name.

    The wrapper:
    1. Runs each call inside a fresh request context
    2. Logs the invocation with prompt arguments redacted
    3. Minifies dict results into a single TextContent block

    Args:
        mcp: FastMCP instance
        canonical_name: The canonical name for the tool
        log_prompts: Log prompt arguments verbatim
        **tool_kwargs: Additional kwargs passed to mcp.tool()

    Returns:
        Decorated function registered as an MCP tool
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with sync_request_context():
                log_tool_invocation(canonical_name, kwargs, log_prompts=log_prompts)
                try:
                    result = func(*args, **kwargs)
                except Exception:
                    logger.exception("Tool %s failed", canonical_name)
                    raise
                if isinstance(result, dict):
                    return _minify_response(result)
                return result

        return mcp.tool(name=canonical_name, **tool_kwargs)(wrapper)

    return decorator
