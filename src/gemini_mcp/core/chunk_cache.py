"""Disk-backed cache for chunked edit results.

Large change-mode results are split into edit chunks by the producing tool.
The first chunk is returned directly; the full sequence is stashed here
under a short key so that follow-up ``fetch-chunk`` calls can page through
it. Entries are short-lived JSON files:

    <tempdir>/gemini-mcp-chunks/<8 hex>.json
    {"chunks": [...], "timestamp": <epoch ms>, "promptHash": "<sha-256 hex>"}

Nothing in this module raises to the caller. Failures are logged and
surfaced as CacheWriteResult / CacheReadResult values. Only keys, counts
and byte lengths are logged, never prompt or chunk content.
"""

import hashlib
import json
import logging
import os
import re
import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from gemini_mcp.config import ChunkCacheConfig

logger = logging.getLogger(__name__)

CACHE_KEY_PATTERN = re.compile(r"[a-f0-9]{8}", re.IGNORECASE)
ENTRY_FILENAME_PATTERN = re.compile(r"[a-f0-9]{8}\.json")
KEY_BYTES = 4
KEY_ATTEMPTS = 5
DIR_MODE = 0o700
FILE_MODE = 0o600

EditChunk = Any
"""Opaque JSON-serializable chunk produced by the change-mode chunker."""

Clock = Callable[[], float]
RandomBytes = Callable[[int], bytes]


def prompt_fingerprint(prompt: str) -> str:
    """Return the sha-256 hex digest of the prompt text."""
    return hashlib.sha256(prompt.encode("utf-8")).hexdigest()


def is_entry_filename(name: str) -> bool:
    """Check whether a directory entry name is a cache entry file."""
    return ENTRY_FILENAME_PATTERN.fullmatch(name) is not None


# =============================================================================
# Results
# =============================================================================


class CacheOutcome(str, Enum):
    """Tri-state outcome of a cache operation."""

    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


class MissReason(str, Enum):
    """Why a read produced no chunks."""

    INVALID_KEY = "invalid_key"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    CORRUPT = "corrupt"
    IO_ERROR = "io_error"


@dataclass
class CacheEntry:
    """A cached chunk sequence with its metadata.

    Attributes:
        chunks: Edit chunks in order, passed through unopened
        timestamp: Creation time in epoch milliseconds
        prompt_hash: sha-256 hex digest of the originating prompt
    """

    chunks: List[EditChunk]
    timestamp: int
    prompt_hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunks": self.chunks,
            "timestamp": self.timestamp,
            "promptHash": self.prompt_hash,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CacheEntry":
        """Build an entry from decoded JSON.

        Raises:
            ValueError: If the data does not have the entry shape
        """
        if not isinstance(data, dict):
            raise ValueError("entry is not an object")
        chunks = data.get("chunks")
        timestamp = data.get("timestamp")
        prompt_hash = data.get("promptHash")
        if not isinstance(chunks, list):
            raise ValueError("chunks is not a list")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise ValueError("timestamp is not a number")
        if not isinstance(prompt_hash, str):
            raise ValueError("promptHash is not a string")
        return cls(chunks=chunks, timestamp=int(timestamp), prompt_hash=prompt_hash)


@dataclass
class CacheWriteResult:
    """Result of cache_chunks().

    ``key`` is always set, even when persistence failed; ``outcome`` tells
    the caller whether the entry actually reached disk.
    """

    key: str
    outcome: CacheOutcome = CacheOutcome.OK
    error: Optional[str] = None

    @property
    def stored(self) -> bool:
        return self.outcome is CacheOutcome.OK


@dataclass
class CacheReadResult:
    """Result of get_chunks()."""

    outcome: CacheOutcome
    chunks: Optional[List[EditChunk]] = None
    reason: Optional[MissReason] = None
    error: Optional[str] = None

    @property
    def hit(self) -> bool:
        return self.outcome is CacheOutcome.OK

    @classmethod
    def found(cls, chunks: List[EditChunk]) -> "CacheReadResult":
        return cls(outcome=CacheOutcome.OK, chunks=chunks)

    @classmethod
    def miss(cls, reason: MissReason) -> "CacheReadResult":
        return cls(outcome=CacheOutcome.NOT_FOUND, reason=reason)

    @classmethod
    def failed(cls, error: str) -> "CacheReadResult":
        return cls(outcome=CacheOutcome.ERROR, reason=MissReason.IO_ERROR, error=error)


@dataclass
class CacheStats:
    """Cache statistics."""

    size: int
    ttl_ms: int
    max_size: int
    cache_dir: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "ttl": self.ttl_ms,
            "max_size": self.max_size,
            "cache_dir": self.cache_dir,
        }


# =============================================================================
# Components
# =============================================================================


class PathResolver:
    """Maps cache keys to entry paths strictly inside the cache directory."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    def resolve(self, key: Any) -> Optional[Path]:
        """Validate a key and return its canonical entry path.

        Returns None for anything that is not exactly 8 hex characters or
        whose canonical path is not directly under the canonical cache
        directory (traversal, symlink escape). Never writes to disk.
        """
        if not isinstance(key, str) or CACHE_KEY_PATTERN.fullmatch(key) is None:
            return None
        base = os.path.realpath(self.cache_dir)
        resolved = os.path.realpath(os.path.join(base, f"{key.lower()}.json"))
        if not resolved.startswith(base + os.sep):
            return None
        return Path(resolved)


class KeyGenerator:
    """Produces short keys that do not collide with existing entries.

    Keys come from a random source for collision avoidance between
    concurrent writers; they are not meant to be unguessable.
    """

    def __init__(
        self,
        resolver: PathResolver,
        random_bytes: RandomBytes = secrets.token_bytes,
        attempts: int = KEY_ATTEMPTS,
    ):
        self.resolver = resolver
        self.random_bytes = random_bytes
        self.attempts = attempts

    @staticmethod
    def _is_free(path: Path) -> bool:
        # A path that cannot be checked counts as taken.
        try:
            return not path.exists()
        except OSError as exc:
            logger.debug("Cannot check key path %s: %s", path.name, exc)
            return False

    def generate(self, prompt_hash: str) -> str:
        for _ in range(self.attempts):
            key = self.random_bytes(KEY_BYTES).hex()
            path = self.resolver.resolve(key)
            if path is not None and self._is_free(path):
                return key

        fallback = prompt_hash[:8]
        if self.resolver.resolve(fallback) is None:
            logger.error("Failed to generate a safe cache key/path, using %s", fallback)
        else:
            logger.debug(
                "Key collision after %s attempts, using prompt fingerprint key %s",
                self.attempts,
                fallback,
            )
        return fallback


class CacheStore:
    """Reads, writes and deletes single entry files."""

    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    @property
    def cache_dir(self) -> Path:
        return self.resolver.cache_dir

    def ensure_dir(self) -> bool:
        """Create the cache directory (mode 0700) and re-assert its mode.

        Returns:
            False if the directory could not be created.
        """
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True, mode=DIR_MODE)
        except OSError as exc:
            logger.error("Failed to create cache directory: %s", type(exc).__name__)
            return False
        try:
            os.chmod(self.cache_dir, DIR_MODE)
        except OSError:
            # Mode is ignored on some platforms
            pass
        return True

    def write(self, key: str, entry: CacheEntry) -> Optional[str]:
        """Persist an entry, overwriting any existing file for the key.

        Returns:
            None on success, otherwise a short error description.
        """
        path = self.resolver.resolve(key)
        if path is None:
            return f"invalid cache key: {key}"
        if not self.ensure_dir():
            return "cache directory unavailable"

        try:
            payload = json.dumps(entry.to_dict(), separators=(",", ":"))
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to cache chunks for %s: %s", key, type(exc).__name__)
            return f"{type(exc).__name__}: {exc}"

        try:
            os.chmod(path, FILE_MODE)
        except OSError:
            pass
        logger.debug(
            "Cached %s chunks to file: %s (%s bytes)",
            len(entry.chunks),
            path.name,
            len(payload),
        )
        return None

    def read(self, key: str) -> Tuple[Optional[CacheEntry], CacheReadResult]:
        """Load an entry.

        Corrupt files are deleted and reported as a miss.

        Returns:
            (entry, result) where entry is set only when the file decoded.
        """
        path = self.resolver.resolve(key)
        if path is None:
            logger.debug("Invalid cache key format (len=%s)", len(str(key)))
            return None, CacheReadResult.miss(MissReason.INVALID_KEY)

        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None, CacheReadResult.miss(MissReason.NOT_FOUND)
        except OSError as exc:
            logger.warning("Cache read error for %s: %s", key, type(exc).__name__)
            return None, CacheReadResult.failed(type(exc).__name__)

        try:
            entry = CacheEntry.from_dict(json.loads(raw.decode("utf-8")))
        except (ValueError, OverflowError) as exc:
            logger.debug("Corrupt cache entry %s (%s), deleting", key, type(exc).__name__)
            self.delete(key)
            return None, CacheReadResult.miss(MissReason.CORRUPT)

        return entry, CacheReadResult.found(entry.chunks)

    def delete(self, key: str) -> bool:
        """Remove an entry file. Absence is not an error.

        Returns:
            True if a file was removed.
        """
        path = self.resolver.resolve(key)
        if path is None:
            return False
        return _unlink(path)

    def list_entries(self) -> List[Tuple[Path, float]]:
        """List entry files with their modification times.

        Files that vanish between listing and stat are skipped.
        """
        entries: List[Tuple[Path, float]] = []
        try:
            scanner = os.scandir(self.cache_dir)
        except FileNotFoundError:
            return entries
        with scanner:
            for item in scanner:
                if not is_entry_filename(item.name):
                    continue
                try:
                    if not item.is_file(follow_symlinks=False):
                        continue
                    entries.append((Path(item.path), item.stat().st_mtime))
                except OSError as exc:
                    logger.debug("Error checking file %s: %s", item.name, type(exc).__name__)
        return entries


def _unlink(path: Path) -> bool:
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.debug("Failed to delete %s: %s", path.name, type(exc).__name__)
        return False


class ExpiryManager:
    """Removes entries whose file mtime is older than the TTL."""

    def __init__(self, store: CacheStore, ttl_seconds: int, clock: Clock = time.time):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def sweep(self) -> int:
        """Delete expired entry files.

        Returns:
            Number of files removed.
        """
        try:
            entries = self.store.list_entries()
        except OSError as exc:
            logger.debug("Cache cleanup error: %s", type(exc).__name__)
            return 0

        now = self.clock()
        cleaned = 0
        for path, mtime in entries:
            if now - mtime > self.ttl_seconds and _unlink(path):
                cleaned += 1

        if cleaned > 0:
            logger.debug("Cleaned %s expired cache files", cleaned)
        return cleaned


class EvictionManager:
    """Caps the number of entries, removing the oldest by mtime first."""

    def __init__(self, store: CacheStore):
        self.store = store

    def enforce(self, max_entries: int) -> int:
        """Delete the oldest entries beyond ``max_entries``.

        Returns:
            Number of files removed.
        """
        try:
            entries = self.store.list_entries()
        except OSError as exc:
            logger.debug("Error enforcing file limits: %s", type(exc).__name__)
            return 0

        if len(entries) <= max_entries:
            return 0

        # Oldest first; name breaks mtime ties so the order is stable
        entries.sort(key=lambda item: (item[1], item[0].name))
        surplus = entries[: len(entries) - max_entries]
        removed = sum(1 for path, _ in surplus if _unlink(path))
        logger.debug("Removed %s old cache files to enforce limit", removed)
        return removed


# =============================================================================
# Facade
# =============================================================================


@dataclass
class ChunkCache:
    """Ephemeral chunk cache bound to one explicit configuration.

    Example:
        cache = ChunkCache(ChunkCacheConfig(cache_dir=tmp_path))
        result = cache.cache_chunks("fix bug", [chunk_a, chunk_b])
        cache.get_chunks(result.key).chunks  # [chunk_a, chunk_b]
    """

    config: ChunkCacheConfig = field(default_factory=ChunkCacheConfig)
    clock: Clock = time.time
    random_bytes: RandomBytes = secrets.token_bytes

    def __post_init__(self) -> None:
        self.cache_dir = self.config.get_cache_dir()
        self.resolver = PathResolver(self.cache_dir)
        self.keys = KeyGenerator(self.resolver, random_bytes=self.random_bytes)
        self.store = CacheStore(self.resolver)
        self.expiry = ExpiryManager(self.store, self.config.ttl_seconds, clock=self.clock)
        self.eviction = EvictionManager(self.store)

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def cache_chunks(self, prompt: str, chunks: List[EditChunk]) -> CacheWriteResult:
        """Store chunks and return the key to fetch them with.

        The key is returned even if the write failed; check ``stored``.
        """
        self.store.ensure_dir()
        self.expiry.sweep()

        prompt_hash = prompt_fingerprint(prompt)
        key = self.keys.generate(prompt_hash)
        entry = CacheEntry(chunks=list(chunks), timestamp=self._now_ms(), prompt_hash=prompt_hash)

        error = self.store.write(key, entry)
        self.eviction.enforce(self.config.max_files)

        if error is not None:
            return CacheWriteResult(key=key, outcome=CacheOutcome.ERROR, error=error)
        return CacheWriteResult(key=key)

    def get_chunks(self, key: str) -> CacheReadResult:
        """Fetch chunks for a key.

        Expired entries are deleted and reported as a miss, judged by the
        entry's embedded timestamp rather than file mtime.
        """
        entry, result = self.store.read(key)
        if entry is None:
            return result

        if self._now_ms() - entry.timestamp > self.config.ttl_ms:
            self.store.delete(key)
            logger.debug("Cache expired for %s, deleted file", key)
            return CacheReadResult.miss(MissReason.EXPIRED)

        logger.debug("Cache hit for %s, returning %s chunks", key, len(entry.chunks))
        return result

    def get_cache_stats(self) -> CacheStats:
        """Report entry count and configured limits."""
        self.store.ensure_dir()
        try:
            size = len(self.store.list_entries())
        except OSError:
            size = 0
        return CacheStats(
            size=size,
            ttl_ms=self.config.ttl_ms,
            max_size=self.config.max_files,
            cache_dir=str(self.cache_dir),
        )

    def cleanup_expired(self) -> int:
        """Run the mtime-based expiry sweep now."""
        return self.expiry.sweep()

    def clear_cache(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries deleted.
        """
        try:
            entries = self.store.list_entries()
        except OSError as exc:
            logger.warning("Failed to list cache entries: %s", type(exc).__name__)
            return 0
        deleted = sum(1 for path, _ in entries if _unlink(path))
        logger.debug("Cleared %s cache files", deleted)
        return deleted
