"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

The server needs very little configuration: a port and a document root.
Everything else has a default that reproduces the classic behavior.

=============================================================================
WHY A FROZEN DATACLASS?
=============================================================================

The configuration is set once at startup and shared by every connection
thread. Freezing it means no thread can change it under another:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION FLOW                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   CLI args / env vars                                               │
    │          │                                                           │
    │          ▼                                                           │
    │   ServerConfig(port=8080, base_path="/var/www")   (frozen)          │
    │          │                                                           │
    │          ├──► SocketServer     (host, port, backlog)                │
    │          ├──► RequestHandlers  (base_path, pages, chunk_size)       │
    │          └──► AccessLog        (log file under base_path)           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
DOCUMENT ROOT LAYOUT
=============================================================================

    base_path/
    ├── index.htm      served for "GET /"
    ├── 404.htm        body of every 404 response
    ├── 500.htm        body of every 500 response
    ├── log.txt        access log (appended)
    └── ...            anything else is served as-is

Paths are built by plain string concatenation (base_path + request path),
exactly as the request arrived. There is no normalization.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the HTTP/1.0 server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, read_timeout, max_connections

    DOCUMENT ROOT
    - base_path, index_file, not_found_page, error_page, chunk_size

    RESPONSES
    - server_name, expose_tracebacks

    LOGGING
    - log_file, log_to_file, log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    port: int = 8080
    """The port number to listen on. 0 lets the OS pick one."""

    base_path: str = "."
    """
    Document root. Request paths are appended to it verbatim, so it
    should not end with a slash.
    """

    host: str = "0.0.0.0"
    """The IP address to bind to. All interfaces by default."""

    backlog: int = 128
    """Maximum number of queued connections waiting for accept()."""

    read_timeout: Optional[float] = None
    """
    Socket timeout for reading a request, in seconds.
    None = block forever. A client that never finishes its request holds
    its thread until it disconnects.
    """

    max_connections: Optional[int] = None
    """
    Maximum number of connections handled at once.
    None = one new thread per connection, without limit. When set, the
    accept loop waits for a free slot before accepting the next client.
    """

    # ─────────────────────────────────────────────────────────────────────
    # DOCUMENT ROOT
    # ─────────────────────────────────────────────────────────────────────

    index_file: str = "index.htm"
    """File served for a request to "/"."""

    not_found_page: str = "404.htm"
    """Body of 404 responses."""

    error_page: str = "500.htm"
    """Body of 500 responses."""

    chunk_size: int = 256
    """Number of bytes written per chunk when streaming a file."""

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSES
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "My Server"
    """Value of the Server header."""

    expose_tracebacks: bool = True
    """
    Append the exception message and traceback to 500 response bodies.
    Useful while debugging, leaks internals otherwise.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_file: str = "log.txt"
    """Access log file name, relative to base_path."""

    log_to_file: bool = True
    """Append the access log to log_file in addition to the console."""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    # ─────────────────────────────────────────────────────────────────────
    # DERIVED PATHS
    # ─────────────────────────────────────────────────────────────────────

    def resolve(self, target: str) -> str:
        """Join a request target onto the document root (no normalization)."""
        return self.base_path + target

    @property
    def index_path(self) -> str:
        return self.resolve("/" + self.index_file)

    @property
    def not_found_path(self) -> str:
        return self.resolve("/" + self.not_found_page)

    @property
    def error_path(self) -> str:
        return self.resolve("/" + self.error_page)

    @property
    def log_path(self) -> str:
        return self.resolve("/" + self.log_file)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        MINIHTTPD_PORT             Server port (default: 8080)
        MINIHTTPD_BASE_PATH        Document root (default: .)
        MINIHTTPD_HOST             Bind address (default: 0.0.0.0)
        MINIHTTPD_LOG_LEVEL        Logging level (default: INFO)
        MINIHTTPD_MAX_CONNECTIONS  Admission limit (default: unbounded)
        MINIHTTPD_READ_TIMEOUT     Read timeout in seconds (default: none)

        =====================================================================
        """
        max_connections = os.getenv("MINIHTTPD_MAX_CONNECTIONS")
        read_timeout = os.getenv("MINIHTTPD_READ_TIMEOUT")
        return cls(
            port=int(os.getenv("MINIHTTPD_PORT", "8080")),
            base_path=os.getenv("MINIHTTPD_BASE_PATH", "."),
            host=os.getenv("MINIHTTPD_HOST", "0.0.0.0"),
            log_level=os.getenv("MINIHTTPD_LOG_LEVEL", "INFO"),
            max_connections=int(max_connections) if max_connections else None,
            read_timeout=float(read_timeout) if read_timeout else None,
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Only numeric ranges are checked. The document root and its pages
        are looked up per request, so a missing 404.htm shows up as a 500
        response rather than a startup failure.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.max_connections is not None and self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")
