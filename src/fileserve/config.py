"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All settings for the file server in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m fileserve ./public --port 3000                   │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── FILESERVE_PORT=3000 python -m fileserve                    │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Configuration is validated once at startup (validate()), so a bad root
directory or port fails immediately instead of on the first request.
=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .transfer.planner import ResponsePolicy
from .transfer.stream import DEFAULT_CHUNK_SIZE


_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    NETWORK:   host, port, backlog, buffer_size, timeout
    HTTP:      keep_alive, keep_alive_timeout, max_request_size
    WORKERS:   max_workers
    FILES:     root_dir, url_prefix, chunk_size
    CACHING:   cache_max_age, disable_cache
    TRANSFER:  accept_ranges, download
    LOGGING:   log_level, log_format
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = 8080
    backlog: int = 128

    buffer_size: int = 8192
    """Socket receive size when reading requests."""

    timeout: Optional[float] = 30.0
    """Socket timeout in seconds, for reading requests and for each write."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0

    max_request_size: int = 64 * 1024
    """File requests are headers only; anything larger is rejected with 413."""

    # ─────────────────────────────────────────────────────────────────────
    # WORKERS
    # ─────────────────────────────────────────────────────────────────────

    max_workers: int = 16
    """
    Connections served at the same time. Each streaming download holds a
    worker for its whole duration.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """Directory files are served from. Nothing outside it is reachable."""

    url_prefix: str = ""
    """URL path files live under ("" serves from /)."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    """Bytes read and sent per streaming step. Bounds memory per download."""

    # ─────────────────────────────────────────────────────────────────────
    # CACHING / TRANSFER
    # ─────────────────────────────────────────────────────────────────────

    cache_max_age: int = 3600
    disable_cache: bool = False
    """Send no-cache directives and no ETag."""

    accept_ranges: bool = True
    """Honor Range headers (206/416). When off, Range is ignored."""

    download: bool = False
    """Content-Disposition: attachment instead of inline."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    server_name: str = "fileserve/1.0"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        FILESERVE_HOST           Bind address (default 127.0.0.1)
        FILESERVE_PORT           Port (default 8080)
        FILESERVE_WORKERS        Max concurrent connections (default 16)
        FILESERVE_TIMEOUT        Socket timeout seconds (default 30)
        FILESERVE_ROOT           Root directory (default .)
        FILESERVE_PREFIX         URL prefix (default "")
        FILESERVE_CHUNK_SIZE     Streaming chunk size (default 8192)
        FILESERVE_CACHE_MAX_AGE  Cache-Control max-age (default 3600)
        FILESERVE_DISABLE_CACHE  1/true to send no-cache headers
        FILESERVE_NO_RANGES      1/true to ignore Range headers
        FILESERVE_DOWNLOAD       1/true for Content-Disposition: attachment
        FILESERVE_LOG_LEVEL      DEBUG/INFO/WARNING/ERROR (default INFO)
        FILESERVE_LOG_FORMAT     text/json (default text)
        """
        return cls(
            host=os.getenv("FILESERVE_HOST", "127.0.0.1"),
            port=int(os.getenv("FILESERVE_PORT", "8080")),
            max_workers=int(os.getenv("FILESERVE_WORKERS", "16")),
            timeout=float(os.getenv("FILESERVE_TIMEOUT", "30")),
            root_dir=os.getenv("FILESERVE_ROOT", "."),
            url_prefix=os.getenv("FILESERVE_PREFIX", ""),
            chunk_size=int(os.getenv("FILESERVE_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))),
            cache_max_age=int(os.getenv("FILESERVE_CACHE_MAX_AGE", "3600")),
            disable_cache=_env_flag("FILESERVE_DISABLE_CACHE", False),
            accept_ranges=not _env_flag("FILESERVE_NO_RANGES", False),
            download=_env_flag("FILESERVE_DOWNLOAD", False),
            log_level=os.getenv("FILESERVE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("FILESERVE_LOG_FORMAT", "text"),
        )

    def response_policy(self) -> ResponsePolicy:
        """The header policy the transfer engine should apply."""
        return ResponsePolicy(
            cache_max_age=self.cache_max_age,
            disable_cache=self.disable_cache,
            accept_ranges=self.accept_ranges,
            download=self.download,
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.cache_max_age < 0:
            raise ValueError("cache_max_age must be >= 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")

        if not Path(self.root_dir).is_dir():
            raise ValueError(f"Root directory does not exist: {self.root_dir}")
