"""
Response envelopes for gemini-mcp tools and the cache CLI.

Every tool result and CLI payload has the same shape:

    {
        "success": bool,
        "data": {...},          # chunk payload, stats, or error fields
        "error": str | null,
        "meta": {
            "version": "response-v2",
            "request_id": "req_abc123"?,
            "warnings": ["..."]?,
            "pagination": {"cursor", "has_more", "total_count"}?
        }
    }

A failed call puts ``error_code``, ``error_type`` and an optional
``remediation`` into ``data``. Failed cache reads are described from the
CacheReadResult itself, so the client learns whether the key was unknown,
expired, corrupt or unreadable.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence

from gemini_mcp.core.chunk_cache import CacheOutcome, CacheReadResult, MissReason
from gemini_mcp.core.context import get_correlation_id

RESPONSE_VERSION = "response-v2"

RERUN_REMEDIATION = (
    "The cached result is gone; re-run the original request to regenerate it."
)


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CACHE_MISS = "CACHE_MISS"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"


class ErrorType(str, Enum):
    """Error categories; only ``unavailable`` is worth retrying."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


_MISS_MESSAGES: Dict[MissReason, str] = {
    MissReason.INVALID_KEY: "'{key}' is not a valid cache key",
    MissReason.NOT_FOUND: "No cached result for key '{key}'",
    MissReason.EXPIRED: "Cached result '{key}' has expired",
    MissReason.CORRUPT: "Cached result '{key}' was damaged and has been discarded",
    MissReason.IO_ERROR: "Cached result '{key}' could not be read",
}


@dataclass
class ToolResponse:
    """Envelope returned by every tool; serialize with ``dataclasses.asdict``."""

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": RESPONSE_VERSION})


def _meta(**sections: Any) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"version": RESPONSE_VERSION}
    request_id = get_correlation_id()
    if request_id:
        meta["request_id"] = request_id
    meta.update({name: value for name, value in sections.items() if value})
    return meta


def success_response(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Sequence[str] = (),
    pagination: Optional[Mapping[str, Any]] = None,
    **fields: Any,
) -> ToolResponse:
    """Wrap a payload; keyword fields are merged over ``data``."""
    return ToolResponse(
        success=True,
        data={**(data or {}), **fields},
        meta=_meta(
            warnings=list(warnings),
            pagination=dict(pagination) if pagination else None,
        ),
    )


def error_response(
    message: str,
    error_code: ErrorCode,
    error_type: ErrorType,
    *,
    remediation: Optional[str] = None,
    **details: Any,
) -> ToolResponse:
    """Wrap a failure. Extra keyword arguments land in ``data.details``."""
    data: Dict[str, Any] = {
        "error_code": error_code.value,
        "error_type": error_type.value,
    }
    if remediation:
        data["remediation"] = remediation
    if details:
        data["details"] = details
    return ToolResponse(success=False, data=data, error=message, meta=_meta())


def validation_error(
    message: str,
    field: str,
    *,
    remediation: Optional[str] = None,
    **details: Any,
) -> ToolResponse:
    """Reject a bad argument, naming it in ``details.field``."""
    return error_response(
        message,
        ErrorCode.VALIDATION_ERROR,
        ErrorType.VALIDATION,
        remediation=remediation,
        field=field,
        **details,
    )


def cache_read_error(cache_key: str, result: CacheReadResult) -> ToolResponse:
    """Describe a get_chunks() result that produced no chunks.

    Malformed keys are a validation error, unreadable entries are
    ``CACHE_UNAVAILABLE`` (retryable), and anything else that is gone is a
    ``CACHE_MISS`` asking the client to re-run the original request.
    """
    reason = result.reason or MissReason.NOT_FOUND
    message = _MISS_MESSAGES[reason].format(key=cache_key)

    if reason is MissReason.INVALID_KEY:
        return validation_error(
            message,
            "cache_key",
            remediation="Use the 8-character cache_key returned with the first chunk.",
        )

    if result.outcome is CacheOutcome.ERROR:
        return error_response(
            message,
            ErrorCode.CACHE_UNAVAILABLE,
            ErrorType.UNAVAILABLE,
            remediation="Check that the cache directory is readable, then retry.",
            reason=reason.value,
        )

    return error_response(
        message,
        ErrorCode.CACHE_MISS,
        ErrorType.NOT_FOUND,
        remediation=RERUN_REMEDIATION,
        reason=reason.value,
    )
