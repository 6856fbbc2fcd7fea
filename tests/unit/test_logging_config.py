"""Tests for logging configuration and formatters."""

import io
import json
import logging

import pytest

from gemini_mcp.core.context import sync_request_context
from gemini_mcp.core.logging_config import (
    LOG_PREFIX,
    configure_logging,
    get_logger,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger("gemini_mcp")
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_human_format_has_prefix_and_correlation_id(self, restore_root_logger):
        stream = io.StringIO()
        configure_logging(level="DEBUG", format="human", stream=stream)

        with sync_request_context(correlation_id="req_abc"):
            get_logger("core.chunk_cache").debug("Cache hit for %s", "1a2b3c4d")

        line = stream.getvalue().strip()
        assert line.startswith(LOG_PREFIX)
        assert "[DEBUG]" in line
        assert "[req_abc]" in line
        assert "core.chunk_cache: Cache hit for 1a2b3c4d" in line

    def test_structured_format_is_json(self, restore_root_logger):
        stream = io.StringIO()
        configure_logging(level=logging.INFO, format="structured", stream=stream)

        with sync_request_context(correlation_id="req_json"):
            get_logger("gemini_mcp.server").info("Started", extra={"entries": 3})

        entry = json.loads(stream.getvalue().strip())
        assert entry["level"] == "INFO"
        assert entry["logger"] == "gemini_mcp.server"
        assert entry["message"] == "Started"
        assert entry["correlation_id"] == "req_json"
        assert entry["extra"] == {"entries": 3}

    def test_level_filters_records(self, restore_root_logger):
        stream = io.StringIO()
        configure_logging(level="WARNING", stream=stream)

        get_logger("x").info("hidden")
        get_logger("x").warning("shown")

        assert "hidden" not in stream.getvalue()
        assert "shown" in stream.getvalue()

    def test_reconfigure_replaces_handlers(self, restore_root_logger):
        configure_logging(stream=io.StringIO())
        logger = configure_logging(stream=io.StringIO())
        assert len(logger.handlers) == 1


def test_get_logger_namespaces_names():
    assert get_logger("tools.chunks").name == "gemini_mcp.tools.chunks"
    assert get_logger("gemini_mcp.server").name == "gemini_mcp.server"
