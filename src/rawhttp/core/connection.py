"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: read one request message, send one
response, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        POST /files/a.txt HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello

    Server might receive:
        recv() → b"POST /files/a.txt HT"
        recv() → b"TP/1.1\r\nContent-Length: 5\r\n\r\nhel"
        recv() → b"lo"

We buffer chunks until the message looks complete:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    read_message() Flow                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   deadline = now + timeout                                           │
    │                                                                      │
    │   loop:                                                              │
    │     remaining = deadline - now   ── ≤ 0 → ReadTimeoutError          │
    │     chunk = recv(buffer_size)    ── timeout → ReadTimeoutError      │
    │     chunk == b""                 ── peer closed                      │
    │     buffer += chunk              ── > cap → MessageTooLargeError    │
    │     complete?                    ── return buffer                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

"Complete" means the header terminator \r\n\r\n has arrived and either:
- a valid Content-Length is present and that many body bytes are in, or
- there is no usable Content-Length and the last recv() came back short
  (the client has nothing more queued for us).

Framing is only approximated here. The parser applies the real rules to
whatever bytes we hand it, so a body shorter than its Content-Length
still fails there as a parse error.

The deadline is ABSOLUTE. A client dripping one byte per second cannot
keep a worker busy past ``timeout``.

=============================================================================
"""

import logging
import re
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum

from ..errors import (
    ConnectionClosedError,
    MessageTooLargeError,
    ReadTimeoutError,
    TransportError,
)


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"
_CONTENT_LENGTH = re.compile(rb"^content-length: (.*?)\r?$", re.IGNORECASE | re.MULTILINE)


class ConnectionState(Enum):
    """Connection lifecycle states, for logging and sanity checks."""

    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log lines.
        state: Current connection state.
        buffer_size: Bytes requested per recv().
        timeout: Read deadline in seconds.
        max_message_size: Largest inbound message accepted.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 1024
    timeout: float = 20.0
    max_message_size: int = 1 << 30

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_message(self) -> bytes:
        """
        Read one inbound message.

        Returns:
            The raw message bytes, possibly incomplete if the peer closed
            early (the parser will reject those).

        Raises:
            ReadTimeoutError: Deadline passed before the message completed.
            MessageTooLargeError: The message grew past max_message_size.
            ConnectionClosedError: Peer closed before sending anything.
            TransportError: Any other socket failure.
        """
        self.state = ConnectionState.READING
        deadline = time.monotonic() + self.timeout
        buffer = b""

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ReadTimeoutError(f"no complete message within {self.timeout}s")

            try:
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(self.buffer_size)
            except socket.timeout as e:
                raise ReadTimeoutError(f"no complete message within {self.timeout}s") from e
            except OSError as e:
                raise TransportError(f"error reading from connection: {e}") from e

            if not chunk:
                if not buffer:
                    raise ConnectionClosedError("connection closed before any data arrived")
                logger.debug(f"[{self.id}] Peer closed after {len(buffer)} bytes")
                return buffer

            buffer += chunk
            if len(buffer) > self.max_message_size:
                raise MessageTooLargeError(len(buffer), self.max_message_size)

            if _is_complete(buffer, short_read=len(chunk) < self.buffer_size):
                return buffer

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> bool:
        """
        Send all of ``data``.

        Returns:
            True if the bytes were handed to the OS, False if the peer is gone.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.settimeout(self.timeout)
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Error writing to connection: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """Close the socket. Safe to call more than once."""
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone
        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _is_complete(buffer: bytes, short_read: bool) -> bool:
    """Decide whether ``buffer`` holds a whole request message."""
    header_end = buffer.find(HEADER_TERMINATOR)
    if header_end == -1:
        return False

    # The last Content-Length line wins, as in the parser
    values = [m.group(1) for m in _CONTENT_LENGTH.finditer(buffer, 0, header_end + 2)]
    if not values or not values[-1].isdigit():
        return short_read

    body_received = len(buffer) - (header_end + len(HEADER_TERMINATOR))
    return body_received >= int(values[-1])
