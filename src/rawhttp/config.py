"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

One frozen dataclass holds every knob the server has. It is built once at
startup (from defaults, the environment, or the CLI) and handed to every
component by reference. Nothing mutates it afterwards, so worker threads
can read it without locks.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m rawhttp --directory /tmp/files                  │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── RAWHTTP_PORT=8080 python -m rawhttp                       │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass, replace


LOG_FORMATS = ("text", "json")


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, backlog

    INBOUND MESSAGES
    - buffer_size, timeout, max_message_size

    FILES
    - directory

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """The IP address to bind to. All interfaces by default."""

    port: int = 4221
    """
    The port number to listen on.
    0 asks the OS for a free port (handy in tests).
    """

    backlog: int = 128
    """Maximum number of queued connections before the OS refuses more."""

    # ─────────────────────────────────────────────────────────────────────
    # INBOUND MESSAGES
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 1024
    """Bytes requested from the socket per recv() call."""

    timeout: float = 20.0
    """
    Read deadline in seconds, measured from the first read.
    A client that has not delivered a complete message by then is dropped.
    """

    max_message_size: int = 1 << 30  # 1 GiB
    """Upper bound on the size of one inbound message."""

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    directory: str = ""
    """
    Served directory for the /files/<name> routes.
    Empty string means the current working directory.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        RAWHTTP_HOST        Bind address (default: 0.0.0.0)
        RAWHTTP_PORT        Port (default: 4221)
        RAWHTTP_DIRECTORY   Served directory (default: cwd)
        RAWHTTP_TIMEOUT     Read deadline in seconds (default: 20)
        RAWHTTP_LOG_LEVEL   Logging level (default: INFO)
        RAWHTTP_LOG_FORMAT  Access log format (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("RAWHTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("RAWHTTP_PORT", "4221")),
            directory=os.getenv("RAWHTTP_DIRECTORY", ""),
            timeout=float(os.getenv("RAWHTTP_TIMEOUT", "20")),
            log_level=os.getenv("RAWHTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("RAWHTTP_LOG_FORMAT", "text"),
        )

    def with_overrides(self, **changes) -> "ServerConfig":
        """
        Return a copy with the given fields replaced.

        None values are skipped, so CLI arguments that were not given
        leave the existing value alone.
        """
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails fast instead of
        surfacing on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_message_size < 1:
            raise ValueError("max_message_size must be >= 1")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
