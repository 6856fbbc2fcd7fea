"""Cache management commands.

Provides commands for inspecting and maintaining the chunk cache.
"""

import click

from gemini_mcp.cli.logging import cli_command
from gemini_mcp.cli.output import emit_error, emit_success
from gemini_mcp.config import ServerConfig
from gemini_mcp.core.chunk_cache import ChunkCache
from gemini_mcp.core.responses import cache_read_error


def _get_cache(ctx: click.Context) -> ChunkCache:
    config: ServerConfig = ctx.obj["config"]
    return ChunkCache(config.chunk_cache)


@click.group("cache")
def cache() -> None:
    """Chunk cache management."""
    pass


@cache.command("info")
@click.pass_context
@cli_command("info")
def cache_info_cmd(ctx: click.Context) -> None:
    """Show cache location, entry count and limits."""
    stats = _get_cache(ctx).get_cache_stats()
    emit_success(stats.to_dict())


@cache.command("clear")
@click.pass_context
@cli_command("clear")
def cache_clear_cmd(ctx: click.Context) -> None:
    """Remove every cached entry."""
    deleted = _get_cache(ctx).clear_cache()
    emit_success({"entries_deleted": deleted})


@cache.command("cleanup")
@click.pass_context
@cli_command("cleanup")
def cache_cleanup_cmd(ctx: click.Context) -> None:
    """Remove entries older than the TTL."""
    removed = _get_cache(ctx).cleanup_expired()
    emit_success(
        {
            "entries_removed": removed,
            "message": f"Removed {removed} expired entries"
            if removed
            else "No expired entries found",
        }
    )


@cache.command("show")
@click.argument("cache_key")
@click.pass_context
@cli_command("show")
def cache_show_cmd(ctx: click.Context, cache_key: str) -> None:
    """Show the chunk count of a cached entry."""
    result = _get_cache(ctx).get_chunks(cache_key)
    if not result.hit or result.chunks is None:
        emit_error(cache_read_error(cache_key, result))
    emit_success({"cache_key": cache_key.lower(), "total_chunks": len(result.chunks)})
