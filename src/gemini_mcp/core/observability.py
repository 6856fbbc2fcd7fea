"""
Redaction and diagnostic logging for tool calls and spawned commands.

Prompt text never reaches the logs unless prompt logging is explicitly
enabled (``GEMINI_MCP_LOG_PROMPTS=1`` or ``[logging] log_prompts = true``).
Redacted values keep their length and a short sha-256 prefix so that
identical prompts can still be correlated across log lines.

``log_tool_invocation`` runs for every registered tool. The parsed-argument
and command timing helpers are for producing tools that spawn the model
CLI; this server ships none, so integrators call them around their own
subprocess launches.
"""

import hashlib
import json
import logging
import time
from typing import Any, List, Mapping, Optional, Sequence

from gemini_mcp.core.context import CommandRecord, get_current_context

logger = logging.getLogger(__name__)

PROMPT_FLAGS = frozenset({"-p", "--prompt"})
"""Command-line flags whose following argument is prompt text."""


# =============================================================================
# Redaction
# =============================================================================


def redact_prompt(value: str, *, log_prompts: bool = False) -> str:
    """Replace prompt text with a length + fingerprint marker.

    Args:
        value: Text to redact
        log_prompts: When True, return the text unchanged

    Returns:
        ``[REDACTED len=<n> sha256=<12 hex>]`` or the original text

    Example:
        >>> redact_prompt("fix bug")
        '[REDACTED len=7 sha256=...]'
    """
    if log_prompts:
        return value
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"[REDACTED len={len(value)} sha256={digest}]"


def sanitize_tool_args(args: Any, *, log_prompts: bool = False) -> Any:
    """Redact prompt-bearing values from tool arguments.

    Lists have every string item redacted. Mappings have string values
    redacted when their key contains "prompt" (case-insensitive). Other
    values are returned unchanged.
    """
    if log_prompts:
        return args
    if not args or isinstance(args, (str, bytes)):
        return args

    if isinstance(args, (list, tuple)):
        return [
            redact_prompt(v) if isinstance(v, str) else v for v in args
        ]

    if isinstance(args, Mapping):
        copy = dict(args)
        for key, value in copy.items():
            if "prompt" in str(key).lower() and isinstance(value, str):
                copy[key] = redact_prompt(value)
        return copy

    return args


def redact_command_args(args: Sequence[str], *, log_prompts: bool = False) -> List[str]:
    """Redact the argument following ``-p`` / ``--prompt`` in a command line."""
    safe_args: List[str] = []
    previous: Optional[str] = None
    for current in args:
        if not log_prompts and previous in PROMPT_FLAGS:
            safe_args.append(redact_prompt(current))
        else:
            safe_args.append(current)
        previous = current
    return safe_args


# =============================================================================
# Diagnostic log lines
# =============================================================================


def log_tool_invocation(tool_name: str, args: Any, *, log_prompts: bool = False) -> None:
    """Log a tool call with prompt arguments redacted."""
    safe_args = sanitize_tool_args(args, log_prompts=log_prompts)
    try:
        rendered = json.dumps(safe_args, default=str)
    except (TypeError, ValueError):
        rendered = str(safe_args)
    logger.debug("Tool %s invoked: %s", tool_name, rendered)


def log_parsed_args(
    prompt: str,
    *,
    change_mode: bool = False,
    log_prompts: bool = False,
) -> None:
    """Log the parsed prompt of a tool call."""
    logger.debug(
        'Parsed prompt: "%s" changeMode: %s',
        redact_prompt(prompt, log_prompts=log_prompts),
        change_mode,
    )


def log_command_start(
    command: str,
    args: Sequence[str],
    start_time: Optional[int] = None,
    *,
    log_prompts: bool = False,
) -> int:
    """Log the start of an external command and remember its start time.

    The start time is stored in the active request context only; outside
    a request nothing is retained.

    Args:
        command: Executable name
        args: Command-line arguments (prompt values are redacted)
        start_time: Start timestamp in epoch ms (default: now)
        log_prompts: Disable redaction

    Returns:
        The start timestamp to pass to log_command_complete()
    """
    if start_time is None:
        start_time = int(time.time() * 1000)
    safe_args = redact_command_args(args, log_prompts=log_prompts)
    logger.info(
        "[%s] Starting: %s %s",
        start_time,
        command,
        " ".join(f'"{arg}"' for arg in safe_args),
    )

    ctx = get_current_context()
    if ctx is not None:
        ctx.command_starts[start_time] = CommandRecord(
            command=command, args=safe_args, start_time=start_time
        )
    return start_time


def log_command_complete(
    start_time: int,
    exit_code: Optional[int],
    output_length: Optional[int] = None,
) -> None:
    """Log command completion with elapsed seconds and forget its start time."""
    elapsed = (time.time() * 1000 - start_time) / 1000
    logger.info("[%.1fs] Process finished with exit code: %s", elapsed, exit_code)
    if output_length is not None:
        logger.info("Response: %s chars", output_length)

    ctx = get_current_context()
    if ctx is not None:
        ctx.command_starts.pop(start_time, None)
