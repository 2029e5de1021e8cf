"""
=============================================================================
RAWHTTP - Minimal HTTP/1.1 Server On Raw Sockets
=============================================================================

A small origin server: one request per connection, a fixed route table,
one thread per connection.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    rawhttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m rawhttp)
    ├── server.py            # HTTPServer: accept → worker → respond
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # Error kinds and exception types
    ├── access_log.py        # Per-request access log lines
    ├── core/                # Sockets
    │   ├── socket_server.py # Listening socket and accept loop
    │   └── connection.py    # One client: bounded read, send, close
    ├── http/                # Protocol
    │   ├── line_reader.py   # Buffered line splitting
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response encoding
    │   └── status.py        # Status code table
    └── handlers/            # Application
        ├── routes.py        # Route dispatcher
        └── files.py         # Served-directory access

=============================================================================
QUICK START
=============================================================================

    from rawhttp import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=4221, directory="/tmp/files"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer, create_app

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "create_app",
    "__version__",
]
