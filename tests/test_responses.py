"""
Tests for response envelopes and cache read error mapping.
"""

import pytest

from gemini_mcp.core.chunk_cache import CacheReadResult, MissReason
from gemini_mcp.core.context import sync_request_context
from gemini_mcp.core.responses import (
    ErrorCode,
    ErrorType,
    ToolResponse,
    cache_read_error,
    error_response,
    success_response,
    validation_error,
)


class TestToolResponse:
    """Tests for the ToolResponse dataclass."""

    def test_default_data_is_empty_dict(self):
        response = ToolResponse(success=True)
        assert response.data == {}
        assert response.error is None
        assert response.meta == {"version": "response-v2"}


class TestSuccessResponse:
    """Tests for the success_response helper function."""

    def test_passes_kwargs_to_data(self):
        response = success_response(cache_key="1a2b3c4d", total_chunks=3)
        assert response.success is True
        assert response.error is None
        assert response.data == {"cache_key": "1a2b3c4d", "total_chunks": 3}

    def test_kwargs_override_data(self):
        response = success_response({"size": 1, "ttl": 0}, ttl=600_000)
        assert response.data == {"size": 1, "ttl": 600_000}

    def test_pagination_and_warnings_in_meta(self):
        response = success_response(
            pagination={"cursor": "x", "has_more": True, "total_count": 2},
            warnings=["careful"],
        )
        assert response.meta["version"] == "response-v2"
        assert response.meta["pagination"]["has_more"] is True
        assert response.meta["warnings"] == ["careful"]

    def test_empty_sections_omitted(self):
        meta = success_response(warnings=[], pagination={}).meta
        assert meta == {"version": "response-v2"}

    def test_request_id_from_context(self):
        with sync_request_context(correlation_id="req_ctx"):
            response = success_response()
        assert response.meta["request_id"] == "req_ctx"


class TestErrorResponse:
    """Tests for error_response / validation_error."""

    def test_codes_remediation_and_details(self):
        response = error_response(
            "gone",
            ErrorCode.CACHE_MISS,
            ErrorType.NOT_FOUND,
            remediation="re-run",
            reason="expired",
        )
        assert response.success is False
        assert response.error == "gone"
        assert response.data == {
            "error_code": "CACHE_MISS",
            "error_type": "not_found",
            "remediation": "re-run",
            "details": {"reason": "expired"},
        }

    def test_details_omitted_when_empty(self):
        response = error_response("x", ErrorCode.CACHE_UNAVAILABLE, ErrorType.UNAVAILABLE)
        assert "details" not in response.data
        assert "remediation" not in response.data

    def test_validation_error_names_field(self):
        response = validation_error("bad index", "chunk_index", total_chunks=3)
        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert response.data["error_type"] == "validation"
        assert response.data["details"] == {"field": "chunk_index", "total_chunks": 3}


class TestCacheReadError:
    """Tests for mapping failed cache reads onto envelopes."""

    @pytest.mark.parametrize(
        "reason, fragment",
        [
            (MissReason.NOT_FOUND, "No cached result"),
            (MissReason.EXPIRED, "expired"),
            (MissReason.CORRUPT, "discarded"),
        ],
    )
    def test_misses_ask_for_rerun(self, reason, fragment):
        response = cache_read_error("1a2b3c4d", CacheReadResult.miss(reason))

        assert fragment in response.error
        assert "1a2b3c4d" in response.error
        assert response.data["error_code"] == "CACHE_MISS"
        assert response.data["error_type"] == "not_found"
        assert response.data["details"] == {"reason": reason.value}
        assert "re-run" in response.data["remediation"]

    def test_invalid_key_is_validation_error(self):
        response = cache_read_error("../etc", CacheReadResult.miss(MissReason.INVALID_KEY))

        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert response.data["details"] == {"field": "cache_key"}

    def test_read_failure_is_retryable(self):
        response = cache_read_error("1a2b3c4d", CacheReadResult.failed("EACCES"))

        assert response.data["error_code"] == "CACHE_UNAVAILABLE"
        assert response.data["error_type"] == "unavailable"
        assert response.data["details"] == {"reason": "io_error"}
