"""
Root pytest configuration and shared fixtures.

Provides a controllable clock, a deterministic random source and chunk
caches rooted in per-test temporary directories.
"""

import os
from pathlib import Path
from typing import Iterable, List

import pytest

from gemini_mcp.config import ChunkCacheConfig
from gemini_mcp.core.chunk_cache import ChunkCache


class FakeClock:
    """Callable clock returning a manually advanced Unix timestamp."""

    def __init__(self, start: float = 1_760_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SequenceBytes:
    """Random source replaying fixed 8-hex-char keys, one per draw."""

    def __init__(self, keys: Iterable[str]):
        self.keys: List[str] = list(keys)
        self.calls = 0

    def __call__(self, n: int) -> bytes:
        assert n == 4
        key = self.keys[self.calls % len(self.keys)]
        self.calls += 1
        return bytes.fromhex(key)


def set_mtime(path: Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Cache directory path (not created yet)."""
    return tmp_path / "gemini-mcp-chunks"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_config(cache_dir: Path) -> ChunkCacheConfig:
    return ChunkCacheConfig(cache_dir=cache_dir)


@pytest.fixture
def chunk_cache(cache_config: ChunkCacheConfig, clock: FakeClock) -> ChunkCache:
    return ChunkCache(cache_config, clock=clock)


@pytest.fixture
def sequence_bytes():
    """Factory for deterministic random sources."""
    return SequenceBytes


@pytest.fixture
def touch():
    """Set a file's modification time."""
    return set_mtime
