"""Logging hooks for CLI commands.

Runs each command inside a request context so log lines and response
envelopes share one correlation ID.
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from gemini_mcp.core.context import generate_correlation_id, sync_request_context

__all__ = ["cli_command", "get_cli_logger"]

T = TypeVar("T")

_cli_logger = logging.getLogger("gemini_mcp.cli")


def get_cli_logger() -> logging.Logger:
    """Get the CLI logger."""
    return _cli_logger


def cli_command(
    command_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for CLI commands with request context and timing logs.

    Example:
        >>> @cli_command("info")
        ... def cache_info_cmd(ctx):
        ...     ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = command_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with sync_request_context(correlation_id=generate_correlation_id("cli")):
                start = time.perf_counter()
                success = True
                _cli_logger.debug("CLI command started: %s", name)
                try:
                    return func(*args, **kwargs)
                except Exception:
                    success = False
                    raise
                finally:
                    _cli_logger.debug(
                        "CLI command completed: %s success=%s duration_ms=%.2f",
                        name,
                        success,
                        (time.perf_counter() - start) * 1000,
                    )

        return wrapper

    return decorator
