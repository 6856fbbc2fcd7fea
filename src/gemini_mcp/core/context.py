"""Request context for log correlation and per-request command timing.

Every tool call runs inside a request context that carries:

- a correlation ID propagated into log records
- the request start time (for elapsed-time fields)
- a command timing map, owned by the request and discarded when it ends

Usage:
    from gemini_mcp.core.context import sync_request_context, get_correlation_id

    with sync_request_context() as ctx:
        print(ctx.correlation_id)  # e.g., "req_a1b2c3d4e5f6"
"""

from __future__ import annotations

import secrets
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List, Optional

__all__ = [
    "correlation_id_var",
    "start_time_var",
    "request_context_var",
    "CommandRecord",
    "RequestContext",
    "generate_correlation_id",
    "sync_request_context",
    "get_correlation_id",
    "get_start_time",
    "get_current_context",
]

# -----------------------------------------------------------------------------
# Context Variables
# -----------------------------------------------------------------------------

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
"""Request correlation ID for tracing requests across components."""

start_time_var: ContextVar[float] = ContextVar("start_time", default=0.0)
"""Request start time as Unix timestamp."""

request_context_var: ContextVar[Optional["RequestContext"]] = ContextVar(
    "request_context", default=None
)
"""The active RequestContext, if any."""


# -----------------------------------------------------------------------------
# Correlation ID Generation
# -----------------------------------------------------------------------------


def generate_correlation_id(prefix: str = "req") -> str:
    """Generate a unique correlation ID with optional prefix.

    Format: {prefix}_{12_hex_chars}
    Example: "req_a1b2c3d4e5f6"

    Args:
        prefix: ID prefix (default: "req")

    Returns:
        Unique correlation ID string
    """
    return f"{prefix}_{secrets.token_hex(6)}"


# -----------------------------------------------------------------------------
# Request Context
# -----------------------------------------------------------------------------


@dataclass
class CommandRecord:
    """A command started during the current request."""

    command: str
    args: List[str]
    start_time: float


@dataclass
class RequestContext:
    """Snapshot of the current request context.

    Attributes:
        correlation_id: Unique request identifier
        start_time: Request start timestamp
        command_starts: Commands started during this request, keyed by
            their start timestamp in epoch milliseconds
    """

    correlation_id: str = ""
    start_time: float = field(default_factory=time.time)
    command_starts: Dict[int, CommandRecord] = field(default_factory=dict)

    @property
    def elapsed_seconds(self) -> float:
        """Calculate elapsed time since request start in seconds."""
        if self.start_time <= 0:
            return 0.0
        return time.time() - self.start_time

    @property
    def elapsed_ms(self) -> float:
        """Calculate elapsed time since request start in milliseconds."""
        return self.elapsed_seconds * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for logging/serialization."""
        return {
            "correlation_id": self.correlation_id,
            "start_time": self.start_time,
            "elapsed_ms": round(self.elapsed_ms, 2),
            "pending_commands": len(self.command_starts),
        }


# -----------------------------------------------------------------------------
# Context Managers
# -----------------------------------------------------------------------------


@contextmanager
def sync_request_context(
    *,
    correlation_id: Optional[str] = None,
) -> Generator[RequestContext, None, None]:
    """Synchronous context manager for request context.

    Sets up context variables for the duration of the with block,
    automatically cleaning up on exit. The command timing map lives on
    the yielded context and is dropped with it.

    Args:
        correlation_id: Request ID (auto-generated if None)

    Yields:
        RequestContext for the request

    Example:
        with sync_request_context() as ctx:
            logger.info(f"Processing request {ctx.correlation_id}")
    """
    corr_id = correlation_id or generate_correlation_id()
    ctx = RequestContext(correlation_id=corr_id, start_time=time.time())

    token_corr = correlation_id_var.set(corr_id)
    token_start = start_time_var.set(ctx.start_time)
    token_ctx = request_context_var.set(ctx)

    try:
        yield ctx
    finally:
        ctx.command_starts.clear()
        correlation_id_var.reset(token_corr)
        start_time_var.reset(token_start)
        request_context_var.reset(token_ctx)


# -----------------------------------------------------------------------------
# Accessors
# -----------------------------------------------------------------------------


def get_correlation_id() -> str:
    """Get the current correlation ID ("" outside a request)."""
    return correlation_id_var.get()


def get_start_time() -> float:
    """Get the current request start time (0.0 outside a request)."""
    return start_time_var.get()


def get_current_context() -> Optional[RequestContext]:
    """Get the active RequestContext, or None outside a request."""
    return request_context_var.get()
