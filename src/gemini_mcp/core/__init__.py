"""Core cache, logging and response helpers for gemini-mcp."""

from gemini_mcp.core.chunk_cache import (
    CacheEntry,
    CacheOutcome,
    CacheReadResult,
    CacheStats,
    CacheWriteResult,
    ChunkCache,
    MissReason,
)

__all__ = [
    "CacheEntry",
    "CacheOutcome",
    "CacheReadResult",
    "CacheStats",
    "CacheWriteResult",
    "ChunkCache",
    "MissReason",
]
