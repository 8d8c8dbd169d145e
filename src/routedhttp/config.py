"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m routedhttp --port 3000                           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m routedhttp                        │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The parser and router take no configuration beyond what is passed to them;
everything here belongs to the server and the handlers around them.

=============================================================================
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


PACKAGE_DIR = Path(__file__).resolve().parent

# Site and data shipped with the package
DEFAULT_PUBLIC_DIR = str(PACKAGE_DIR / "public")
DEFAULT_DATA_DIR = str(PACKAGE_DIR / "data")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK       host, port, backlog, buffer_size, timeout
    WORKERS       min_workers, max_workers, queue_size
    HTTP          max_request_size
    CONTENT       public_dir, data_dir
    LOGGING       log_level
    IDENTITY      server_name

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """"127.0.0.1" for local development, "0.0.0.0" inside containers."""

    port: int = 3000

    backlog: int = 128
    """Connections the kernel queues before refusing new ones."""

    buffer_size: int = 8192
    """Bytes per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Seconds to wait for a client to finish sending its request.
    None blocks forever.
    """

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """Worker threads started with the server."""

    max_workers: int = 16
    """Hard cap on connections served at once."""

    queue_size: int = 64
    """
    Accepted connections allowed to wait for a worker. Beyond this the
    server answers 503 Service Unavailable.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: int = 1024 * 1024  # 1 MB
    """Requests larger than this are answered with 413."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    public_dir: str = field(default=DEFAULT_PUBLIC_DIR)
    """Root of the static site (index.html, health.html, 404.html, ...)."""

    data_dir: str = field(default=DEFAULT_DATA_DIR)
    """Directory of JSON files behind /api."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "routedhttp/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        HTTP_HOST        Server host (default: 127.0.0.1)
        HTTP_PORT        Server port (default: 3000)
        HTTP_TIMEOUT     Request read timeout in seconds (default: 30)
        HTTP_WORKERS     Maximum worker threads (default: 16)
        HTTP_PUBLIC_DIR  Static site directory (default: bundled site)
        HTTP_DATA_DIR    JSON data directory (default: bundled data)
        HTTP_LOG_LEVEL   Logging level (default: INFO)
        """
        max_workers = int(os.getenv("HTTP_WORKERS", "16"))
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "3000")),
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            min_workers=min(cls.min_workers, max_workers),
            max_workers=max_workers,
            public_dir=os.getenv("HTTP_PUBLIC_DIR", DEFAULT_PUBLIC_DIR),
            data_dir=os.getenv("HTTP_DATA_DIR", DEFAULT_DATA_DIR),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values at startup, not at first use.

        Raises:
            ValueError: describing the first invalid setting.
        """
        # Port 0 lets the OS pick a free port (used by tests)
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.max_request_size < 1:
            raise ValueError("max_request_size must be >= 1")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

        if not Path(self.public_dir).is_dir():
            raise ValueError(f"Public directory does not exist: {self.public_dir}")
