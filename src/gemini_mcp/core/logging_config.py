"""Structured logging configuration with automatic context injection.

Logs go to stderr; stdout carries the MCP stdio transport.

Usage:
    from gemini_mcp.core.logging_config import get_logger, configure_logging

    configure_logging(level="DEBUG", format="human")
    logger = get_logger(__name__)

    with sync_request_context():
        logger.info("Processing request")  # Includes correlation_id in record
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO, Union

from gemini_mcp.core.context import get_correlation_id, get_start_time

__all__ = [
    "LOG_PREFIX",
    "ContextFilter",
    "StructuredFormatter",
    "HumanReadableFormatter",
    "configure_logging",
    "get_logger",
]

LOG_PREFIX = "[GMCPT]"

_ROOT_LOGGER = "gemini_mcp"


class ContextFilter(logging.Filter):
    """Logging filter that injects request context into log records.

    Adds ``correlation_id`` and ``elapsed_ms`` to every record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"

        start_time = get_start_time()
        if start_time > 0:
            record.elapsed_ms = round((time.time() - start_time) * 1000, 2)
        else:
            record.elapsed_ms = 0.0

        return True


class StructuredFormatter(logging.Formatter):
    """JSON-structured log formatter for machine-readable output.

    Example output:
        {"timestamp":"2024-01-15T10:30:45.123Z","level":"DEBUG",
         "logger":"gemini_mcp.core.chunk_cache","message":"Cached 3 chunks",
         "correlation_id":"req_a1b2c3d4e5f6","elapsed_ms":4.2}
    """

    _STANDARD_ATTRS = frozenset(
        {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "message",
            "exc_info",
            "exc_text",
            "stack_info",
            "taskName",
            "correlation_id",
            "elapsed_ms",
        }
    )

    def __init__(self, *, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", "-"),
            "elapsed_ms": getattr(record, "elapsed_ms", 0.0),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra = {}
            for key, value in record.__dict__.items():
                if key not in self._STANDARD_ATTRS:
                    try:
                        json.dumps(value)
                        extra[key] = value
                    except (TypeError, ValueError):
                        extra[key] = str(value)
            if extra:
                log_entry["extra"] = extra

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter with context prefix.

    Produces logs in format:
        [GMCPT] [LEVEL] [correlation_id] logger: message

    Example:
        [GMCPT] [DEBUG] [req_a1b2c3] core.chunk_cache: Cache hit for 1a2b3c4d
    """

    def __init__(self, *, include_timestamp: bool = False):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        parts = [LOG_PREFIX]

        if self.include_timestamp:
            ts = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
            parts.append(ts)

        parts.append(f"[{record.levelname}]")

        corr_id = getattr(record, "correlation_id", "-")
        if corr_id and corr_id != "-":
            parts.append(f"[{corr_id}]")

        logger_name = record.name
        if logger_name.startswith(_ROOT_LOGGER + "."):
            logger_name = logger_name[len(_ROOT_LOGGER) + 1 :]
        parts.append(f"{logger_name}:")

        parts.append(record.getMessage())

        result = " ".join(parts)

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


def configure_logging(
    *,
    level: Union[int, str] = logging.INFO,
    format: str = "human",  # "structured" or "human"
    stream: Optional[TextIO] = None,
    add_context: bool = True,
) -> logging.Logger:
    """Configure the root gemini_mcp logger.

    Args:
        level: Log level (default: INFO)
        format: Output format ("structured" for JSON, "human" for readable)
        stream: Output stream (default: stderr)
        add_context: Add ContextFilter for automatic context injection

    Returns:
        Configured root logger for gemini_mcp
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)

    if format == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanReadableFormatter())

    if add_context:
        handler.addFilter(ContextFilter())

    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the gemini_mcp namespace.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if not name.startswith(_ROOT_LOGGER):
        name = f"{_ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
