"""JSON output helpers for the gemini-mcp CLI.

CLI output uses the same response-v2 envelope as the MCP tools.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, NoReturn, Sequence

from gemini_mcp.core.responses import ToolResponse, success_response


def emit(data: Any, *, err: bool = False) -> None:
    """Emit minified JSON to stdout (or stderr)."""
    print(
        json.dumps(data, separators=(",", ":"), default=str),
        file=sys.stderr if err else sys.stdout,
    )


def emit_error(response: ToolResponse) -> NoReturn:
    """Emit a failed envelope to stderr and exit with code 1.

    Raises:
        SystemExit: Always exits with code 1.
    """
    emit(asdict(response), err=True)
    sys.exit(1)


def emit_success(data: Any, *, warnings: Sequence[str] = ()) -> None:
    """Emit success response envelope to stdout.

    Non-dict data is wrapped under a ``result`` key.
    """
    payload = data if isinstance(data, dict) else {"result": data}
    emit(asdict(success_response(payload, warnings=warnings)))
