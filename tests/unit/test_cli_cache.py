"""Tests for the gemini-mcp-cache CLI."""

import json

import pytest
from click.testing import CliRunner

from gemini_mcp.cli.main import cli
from gemini_mcp.config import ChunkCacheConfig
from gemini_mcp.core.chunk_cache import ChunkCache


@pytest.fixture
def runner():
    return CliRunner()


def _invoke(runner, cache_dir, *args):
    result = runner.invoke(cli, ["--cache-dir", str(cache_dir), "cache", *args])
    return result, (json.loads(result.output) if result.output.strip() else None)


class TestCacheCommands:
    """Tests for cache info / clear / cleanup / show."""

    def test_info_on_empty_cache(self, runner, cache_dir):
        result, payload = _invoke(runner, cache_dir, "info")

        assert result.exit_code == 0
        assert payload["success"] is True
        assert payload["data"]["size"] == 0
        assert payload["data"]["cache_dir"] == str(cache_dir)
        assert payload["meta"]["request_id"].startswith("cli_")

    def test_clear_removes_entries(self, runner, cache_dir):
        cache = ChunkCache(ChunkCacheConfig(cache_dir=cache_dir))
        cache.cache_chunks("a", [1, 2])
        cache.cache_chunks("b", [3, 4])

        result, payload = _invoke(runner, cache_dir, "clear")

        assert result.exit_code == 0
        assert payload["data"] == {"entries_deleted": 2}
        assert cache.get_cache_stats().size == 0

    def test_cleanup_without_expired_entries(self, runner, cache_dir):
        ChunkCache(ChunkCacheConfig(cache_dir=cache_dir)).cache_chunks("a", [1, 2])

        result, payload = _invoke(runner, cache_dir, "cleanup")

        assert result.exit_code == 0
        assert payload["data"] == {
            "entries_removed": 0,
            "message": "No expired entries found",
        }

    def test_show_existing_entry(self, runner, cache_dir):
        key = ChunkCache(ChunkCacheConfig(cache_dir=cache_dir)).cache_chunks("a", [1, 2, 3]).key

        result, payload = _invoke(runner, cache_dir, "show", key)

        assert result.exit_code == 0
        assert payload["data"] == {"cache_key": key, "total_chunks": 3}

    def test_show_missing_entry_exits_nonzero(self, runner, cache_dir):
        result = runner.invoke(cli, ["--cache-dir", str(cache_dir), "cache", "show", "00000000"])

        assert result.exit_code == 1
        assert "CACHE_MISS" in result.output or "CACHE_MISS" in getattr(result, "stderr", "")

    def test_show_malformed_key_is_validation_error(self, runner, cache_dir):
        result = runner.invoke(cli, ["--cache-dir", str(cache_dir), "cache", "show", "../etc"])

        assert result.exit_code == 1
        assert "VALIDATION_ERROR" in result.output or "VALIDATION_ERROR" in getattr(result, "stderr", "")
