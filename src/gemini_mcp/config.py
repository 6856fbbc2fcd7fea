"""
Server configuration for gemini-mcp.

Supports configuration via:
1. Environment variables (highest priority, logging only)
2. TOML config file (gemini-mcp.toml)
3. Default values (lowest priority)

Environment variables:
- GEMINI_MCP_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- GEMINI_MCP_LOG_PROMPTS: Log raw prompt text instead of redacted markers (1/true)
- GEMINI_MCP_CONFIG_FILE: Path to TOML config file

Chunk cache settings (directory, TTL, entry cap) are read from the
``[chunk_cache]`` TOML table or passed explicitly; they are never taken
from the environment.
"""

import os
import logging
import tempfile
from dataclasses import dataclass, field
from importlib.metadata import version as get_package_version, PackageNotFoundError
from pathlib import Path
from typing import Optional, Dict, Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback


logger = logging.getLogger(__name__)


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("gemini-mcp")
    except PackageNotFoundError:
        return "0.3.0"  # Fallback for dev without install


_PACKAGE_VERSION = _get_version()

DEFAULT_CACHE_SUBDIR = "gemini-mcp-chunks"
DEFAULT_CACHE_TTL_SECONDS = 10 * 60
DEFAULT_MAX_CACHE_FILES = 50


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _positive_int(value: Any, default: int, name: str, minimum: int = 1) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s %r, using default %s", name, value, default)
        return default
    if parsed < minimum:
        logger.warning(
            "%s must be >= %s (got %s), using default %s", name, minimum, parsed, default
        )
        return default
    return parsed


@dataclass
class ChunkCacheConfig:
    """Configuration for the chunk cache.

    Attributes:
        cache_dir: Explicit cache directory (None = platform temp dir + subdir)
        subdir: Directory name created under the platform temp dir
        ttl_seconds: Maximum entry age before it is treated as absent
        max_files: Maximum number of entries kept after each write
    """

    cache_dir: Optional[Path] = None
    subdir: str = DEFAULT_CACHE_SUBDIR
    ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    max_files: int = DEFAULT_MAX_CACHE_FILES

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "ChunkCacheConfig":
        """Create config from TOML dict (typically [chunk_cache] section).

        Args:
            data: Dict from TOML parsing

        Returns:
            ChunkCacheConfig instance
        """
        cache_dir = data.get("dir")
        return cls(
            cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
            subdir=str(data.get("subdir", DEFAULT_CACHE_SUBDIR)),
            ttl_seconds=_positive_int(
                data.get("ttl_seconds", DEFAULT_CACHE_TTL_SECONDS),
                DEFAULT_CACHE_TTL_SECONDS,
                "chunk_cache.ttl_seconds",
            ),
            max_files=_positive_int(
                data.get("max_files", DEFAULT_MAX_CACHE_FILES),
                DEFAULT_MAX_CACHE_FILES,
                "chunk_cache.max_files",
            ),
        )

    def get_cache_dir(self) -> Path:
        """Get the resolved cache directory path.

        Returns:
            Explicit cache_dir if set, otherwise <tempdir>/<subdir>
        """
        if self.cache_dir:
            return Path(self.cache_dir)
        return Path(tempfile.gettempdir()) / self.subdir

    @property
    def ttl_ms(self) -> int:
        return self.ttl_seconds * 1000


@dataclass
class ServerConfig:
    """Server configuration with support for env vars and TOML overrides."""

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = False
    log_prompts: bool = False

    # Server configuration
    server_name: str = "gemini-mcp"
    server_version: str = field(default_factory=lambda: _PACKAGE_VERSION)

    # Chunk cache configuration
    chunk_cache: ChunkCacheConfig = field(default_factory=ChunkCacheConfig)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ServerConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values
        """
        config = cls()

        # Load TOML config if available
        toml_path = config_file or os.environ.get("GEMINI_MCP_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            # Try default locations
            for default_path in ["gemini-mcp.toml", ".gemini-mcp.toml"]:
                if Path(default_path).exists():
                    config._load_toml(Path(default_path))
                    break

        # Override with environment variables
        config._load_env()

        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            # Logging settings
            if "logging" in data:
                log = data["logging"]
                if "level" in log:
                    self.log_level = str(log["level"]).upper()
                if "structured" in log:
                    self.structured_logging = _parse_bool(log["structured"])
                if "log_prompts" in log:
                    self.log_prompts = _parse_bool(log["log_prompts"])

            # Server settings
            if "server" in data:
                srv = data["server"]
                if "name" in srv:
                    self.server_name = srv["name"]

            # Chunk cache settings
            if "chunk_cache" in data:
                self.chunk_cache = ChunkCacheConfig.from_toml_dict(data["chunk_cache"])

        except Exception as e:
            logger.error(f"Error loading config file {path}: {e}")

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        # Log level
        if level := os.environ.get("GEMINI_MCP_LOG_LEVEL"):
            self.log_level = level.upper()

        # Prompt logging (redaction policy)
        if log_prompts := os.environ.get("GEMINI_MCP_LOG_PROMPTS"):
            self.log_prompts = _parse_bool(log_prompts)

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        from gemini_mcp.core.logging_config import configure_logging

        configure_logging(
            level=getattr(logging, self.log_level, logging.INFO),
            format="structured" if self.structured_logging else "human",
        )


# Global configuration instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def set_config(config: ServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
