"""Chunk retrieval tools.

Producing tools hand a long chunk sequence to ``build_chunked_response``,
which stashes it in the chunk cache and returns only the first chunk. The
client then pages through the rest with ``fetch-chunk``. ``chunk-cache``
exposes stats, clear and cleanup for operators.

This server registers only the retrieval side. A producing tool (for
example a change-mode edit tool) lives with its integrator and must call
``build_chunked_response`` with the shared ChunkCache; until one does,
``fetch-chunk`` only finds entries written through that helper.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List

from mcp.server.fastmcp import FastMCP

from gemini_mcp.config import ServerConfig
from gemini_mcp.core.chunk_cache import ChunkCache
from gemini_mcp.core.naming import canonical_tool
from gemini_mcp.core.responses import (
    cache_read_error,
    success_response,
    validation_error,
)

logger = logging.getLogger(__name__)


def _chunk_payload(
    chunks: List[Any], chunk_index: int, cache_key: str | None
) -> Dict[str, Any]:
    total = len(chunks)
    payload: Dict[str, Any] = {
        "chunk": chunks[chunk_index - 1],
        "chunk_index": chunk_index,
        "total_chunks": total,
    }
    if cache_key is not None:
        payload["cache_key"] = cache_key
    return payload


def _pagination(cache_key: str | None, chunk_index: int, total: int) -> Dict[str, Any]:
    has_more = chunk_index < total
    return {
        "cursor": f"{cache_key}:{chunk_index + 1}" if has_more and cache_key else None,
        "has_more": has_more,
        "total_count": total,
    }


def build_chunked_response(cache: ChunkCache, prompt: str, chunks: List[Any]) -> dict:
    """Return the first chunk and stash the full sequence for later fetches.

    Args:
        cache: Chunk cache to stash into
        prompt: Prompt that produced the chunks (fingerprinted, never logged)
        chunks: Edit chunks in order

    Returns:
        Serialized response-v2 envelope
    """
    if not chunks:
        return asdict(
            success_response(
                chunk=None,
                chunk_index=0,
                total_chunks=0,
                pagination=_pagination(None, 0, 0),
            )
        )

    if len(chunks) == 1:
        return asdict(
            success_response(
                data=_chunk_payload(chunks, 1, None),
                pagination=_pagination(None, 1, 1),
            )
        )

    result = cache.cache_chunks(prompt, chunks)
    warnings = []
    if not result.stored:
        warnings.append(
            "Remaining chunks could not be cached; fetch-chunk will not find them."
        )

    return asdict(
        success_response(
            data=_chunk_payload(chunks, 1, result.key),
            pagination=_pagination(result.key, 1, len(chunks)),
            warnings=warnings,
        )
    )


def perform_fetch_chunk(cache: ChunkCache, cache_key: str, chunk_index: int) -> dict:
    """Fetch one chunk (1-based) of a cached sequence."""
    result = cache.get_chunks(cache_key)
    if not result.hit or result.chunks is None:
        return asdict(cache_read_error(cache_key, result))

    total = len(result.chunks)
    if chunk_index < 1 or chunk_index > total:
        return asdict(
            validation_error(
                f"chunk_index {chunk_index} is out of range (1-{total})",
                "chunk_index",
                remediation=f"Use a chunk_index between 1 and {total}.",
                total_chunks=total,
            )
        )

    return asdict(
        success_response(
            data=_chunk_payload(result.chunks, chunk_index, cache_key),
            pagination=_pagination(cache_key, chunk_index, total),
        )
    )


def perform_cache_stats(cache: ChunkCache) -> dict:
    return asdict(success_response(data=cache.get_cache_stats().to_dict()))


def perform_cache_clear(cache: ChunkCache) -> dict:
    deleted = cache.clear_cache()
    return asdict(success_response(entries_deleted=deleted))


def perform_cache_cleanup(cache: ChunkCache) -> dict:
    removed = cache.cleanup_expired()
    return asdict(success_response(entries_removed=removed))


_CACHE_ACTIONS: Dict[str, Callable[[ChunkCache], dict]] = {
    "stats": perform_cache_stats,
    "clear": perform_cache_clear,
    "cleanup": perform_cache_cleanup,
}


def dispatch_cache_action(cache: ChunkCache, action: str) -> dict:
    handler = _CACHE_ACTIONS.get(action.lower())
    if handler is None:
        allowed = ", ".join(_CACHE_ACTIONS)
        return asdict(
            validation_error(
                f"Unsupported chunk-cache action '{action}'. Allowed actions: {allowed}",
                "action",
                remediation=f"Use one of: {allowed}",
                allowed_actions=list(_CACHE_ACTIONS),
            )
        )
    return handler(cache)


def register_chunk_tools(mcp: FastMCP, config: ServerConfig, cache: ChunkCache) -> None:
    """Register fetch-chunk and chunk-cache tools."""

    @canonical_tool(mcp, canonical_name="fetch-chunk", log_prompts=config.log_prompts)
    def fetch_chunk(cache_key: str, chunk_index: int) -> dict:
        """Fetch the next chunk of a large edit result.

        Args:
            cache_key: The cache_key returned with the first chunk.
            chunk_index: 1-based index of the chunk to return.
        """
        return perform_fetch_chunk(cache, cache_key, chunk_index)

    @canonical_tool(mcp, canonical_name="chunk-cache", log_prompts=config.log_prompts)
    def chunk_cache(action: str) -> dict:
        """Inspect or maintain the chunk cache via `action` parameter.

        Args:
            action: One of "stats", "clear", or "cleanup".
        """
        return dispatch_cache_action(cache, action)

    logger.debug("Registered chunk tools: fetch-chunk, chunk-cache")


__all__ = [
    "build_chunked_response",
    "dispatch_cache_action",
    "perform_fetch_chunk",
    "register_chunk_tools",
]
