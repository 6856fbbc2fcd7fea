"""Tests for request context and request-scoped command timing."""

import re

from gemini_mcp.core.context import (
    generate_correlation_id,
    get_correlation_id,
    get_current_context,
    get_start_time,
    sync_request_context,
)
from gemini_mcp.core.observability import log_command_complete, log_command_start


class TestCorrelationId:
    """Tests for correlation ID generation and propagation."""

    def test_format(self):
        assert re.fullmatch(r"req_[0-9a-f]{12}", generate_correlation_id())
        assert generate_correlation_id("cli").startswith("cli_")

    def test_unset_outside_request(self):
        assert get_correlation_id() == ""
        assert get_start_time() == 0.0
        assert get_current_context() is None

    def test_set_inside_request_and_reset_after(self):
        with sync_request_context(correlation_id="req_fixed") as ctx:
            assert get_correlation_id() == "req_fixed"
            assert get_current_context() is ctx
            assert get_start_time() == ctx.start_time

        assert get_correlation_id() == ""
        assert get_current_context() is None

    def test_nested_contexts_restore_outer(self):
        with sync_request_context(correlation_id="req_outer"):
            with sync_request_context(correlation_id="req_inner"):
                assert get_correlation_id() == "req_inner"
            assert get_correlation_id() == "req_outer"


class TestCommandTimings:
    """Command start times live only as long as the request."""

    def test_start_is_recorded_on_current_request(self):
        with sync_request_context() as ctx:
            started = log_command_start("gemini", ["-p", "hello"], start_time=1000)
            assert started == 1000
            assert ctx.command_starts[1000].command == "gemini"

    def test_complete_forgets_start(self):
        with sync_request_context() as ctx:
            started = log_command_start("gemini", ["--version"])
            log_command_complete(started, 0, output_length=12)
            assert ctx.command_starts == {}

    def test_unfinished_commands_dropped_with_request(self):
        with sync_request_context() as ctx:
            log_command_start("gemini", ["-p", "x"], start_time=1)
            log_command_start("gemini", ["-p", "y"], start_time=2)
            assert len(ctx.command_starts) == 2

        assert ctx.command_starts == {}

    def test_nothing_retained_outside_request(self):
        started = log_command_start("gemini", ["--version"])
        log_command_complete(started, 0)
        assert get_current_context() is None

    def test_to_dict_reports_pending(self):
        with sync_request_context(correlation_id="req_x") as ctx:
            log_command_start("gemini", [], start_time=7)
            data = ctx.to_dict()

        assert data["correlation_id"] == "req_x"
        assert data["pending_commands"] == 1
