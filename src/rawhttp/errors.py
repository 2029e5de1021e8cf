"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server can hit belongs to one of five kinds. The kind,
not the exception class, decides what happens next:

    ┌──────────────┬───────────┬──────────────────────────────────────────┐
    │ KIND         │ FATAL?    │ WHAT HAPPENS                             │
    ├──────────────┼───────────┼──────────────────────────────────────────┤
    │ TRANSPORT    │ yes       │ read/write/deadline/size cap failure.    │
    │              │           │ Connection closed, listener continues.   │
    ├──────────────┼───────────┼──────────────────────────────────────────┤
    │ PARSE        │ yes       │ malformed request line, truncated body.  │
    │              │           │ Connection closed, NO response sent.     │
    ├──────────────┼───────────┼──────────────────────────────────────────┤
    │ ROUTE        │ no        │ unknown route, bad target shape.         │
    │              │           │ Client gets a 4xx/5xx response.          │
    ├──────────────┼───────────┼──────────────────────────────────────────┤
    │ ENCODING     │ no        │ unsupported Accept-Encoding label.       │
    │              │           │ Logged, response goes out unencoded.     │
    ├──────────────┼───────────┼──────────────────────────────────────────┤
    │ FILESYSTEM   │ yes       │ I/O error other than "not found".        │
    │              │           │ Mapped to 500 by the dispatcher.         │
    └──────────────┴───────────┴──────────────────────────────────────────┘

Callers branch on ``error.kind.fatal``:

    try:
        response.encode()
    except ServerError as e:
        if e.kind.fatal:
            raise
        logger.warning(...)

=============================================================================
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Category of a server failure."""

    TRANSPORT = "transport"
    PARSE = "parse"
    ROUTE = "route"
    ENCODING = "encoding"
    FILESYSTEM = "filesystem"

    @property
    def fatal(self) -> bool:
        """Whether a failure of this kind ends processing of the request."""
        return self not in _RECOVERABLE


_RECOVERABLE = frozenset({ErrorKind.ROUTE, ErrorKind.ENCODING})


class ServerError(Exception):
    """
    Base class for every error raised by rawhttp.

    Carries an ErrorKind so handlers can decide between "log and carry on"
    and "abort this connection" without isinstance() chains.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    @property
    def fatal(self) -> bool:
        return self.kind.fatal


# =============================================================================
# TRANSPORT
# =============================================================================

class TransportError(ServerError):
    """Socket level failure while talking to a client."""

    kind = ErrorKind.TRANSPORT


class ReadTimeoutError(TransportError):
    """The client did not deliver a complete message before the deadline."""


class MessageTooLargeError(TransportError):
    """The inbound message exceeded the configured size cap."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"message from connection exceeded limit of {limit} bytes (got {size})")
        self.size = size
        self.limit = limit


class ConnectionClosedError(TransportError):
    """The peer closed the connection before sending anything."""


# =============================================================================
# PROTOCOL
# =============================================================================

class HTTPParseError(ServerError):
    """
    Raised when raw bytes cannot be turned into an HTTPRequest.

    Malformed requests are silently discarded: the server never answers
    a request it could not parse.
    """

    kind = ErrorKind.PARSE


class UnsupportedEncodingError(ServerError):
    """
    The requested content encoding is not one we can label.

    Recoverable: the response has already been reset to unencoded and can
    be sent as-is.
    """

    kind = ErrorKind.ENCODING

    def __init__(self, method: str):
        super().__init__(f"tried to use unsupported encoding method: {method}")
        self.method = method


# =============================================================================
# FILE STORE
# =============================================================================

class FileStoreError(ServerError):
    """An I/O failure in the served directory other than "not found"."""

    kind = ErrorKind.FILESYSTEM


class PathOutsideRootError(ServerError, ValueError):
    """A file name resolved to a location outside the served directory."""

    kind = ErrorKind.ROUTE
