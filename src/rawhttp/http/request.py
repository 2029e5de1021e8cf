"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes captured from one connection into an HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /files/notes.txt HTTP/1.1\r\n      ← REQUEST LINE            │
    │   ─┬── ────────┬─────── ───┬────                                    │
    │    │           │           │                                        │
    │  Method      Target     Version                                     │
    │                                                                      │
    │   Host: localhost:4221\r\n                ← HEADERS                 │
    │   Content-Type: application/octet-stream\r\n                        │
    │   Content-Length: 5\r\n                                             │
    │   \r\n                                    ← EMPTY LINE              │
    │   hello                                   ← BODY (5 bytes)          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING ALGORITHM
=============================================================================

1. Request line: split on spaces into method, target, version.
   Fewer than three parts is fatal.

2. Headers: read lines until the empty line. Each line splits on the
   first ": ". Only a fixed set of header names is kept, everything else
   is logged and dropped.

3. Content-Length: must be plain digits. Anything else becomes the -1
   sentinel, which means "no length given".

4. Body:
   - length known  → read exactly that many bytes, fail if they are missing
   - length absent → read ONE more line as a best-effort body; running
                     out of bytes here is normal (most requests have none)

The target is kept exactly as sent. No URL decoding, no validation.

=============================================================================
"""

import io
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from ..errors import HTTPParseError
from .line_reader import DEFAULT_BUFFER_SIZE, LineReader
from .status import TEXT_ENCODING, TEXT_ERRORS


logger = logging.getLogger(__name__)

NO_CONTENT_LENGTH = -1


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Immutable: built once by RequestParser and read by the dispatcher.

    Attributes:
        method:          Request method token ("GET", "POST", ...).
        target:          Request target, exactly as sent.
        version:         Version token, normally "HTTP/1.1".
        host, user_agent, accept, content_type, accept_encoding:
                         Raw values of the recognized headers ("" if absent).
        content_length:  Declared body length, -1 if absent or invalid.
        body:            Body bytes. Exactly content_length bytes when that
                         is >= 0, otherwise at most one line.
        line:            The raw request line.
        client_address:  Peer (ip, port), for logging.
    """

    method: str
    target: str
    version: str = "HTTP/1.1"

    host: str = ""
    user_agent: str = ""
    accept: str = ""
    content_type: str = ""
    content_length: int = NO_CONTENT_LENGTH
    accept_encoding: str = ""

    body: bytes = b""
    line: str = ""
    client_address: tuple[str, int] = field(default=("", 0), compare=False)

    @property
    def has_content_length(self) -> bool:
        return self.content_length != NO_CONTENT_LENGTH


# =============================================================================
# HEADER DISPATCH
# =============================================================================

class HeaderName(str, Enum):
    """Request headers the parser keeps. Values are lowercase wire names."""

    HOST = "host"
    USER_AGENT = "user-agent"
    ACCEPT = "accept"
    CONTENT_TYPE = "content-type"
    CONTENT_LENGTH = "content-length"
    ACCEPT_ENCODING = "accept-encoding"

    @classmethod
    def lookup(cls, name: str) -> Optional["HeaderName"]:
        """Case-insensitive lookup, None for headers we do not keep."""
        try:
            return cls(name.lower())
        except ValueError:
            return None


# A setter stores one header value into the field dict used to build the
# HTTPRequest.
HeaderSetter = Callable[[Dict[str, object], str], None]

_DIGITS = re.compile(r"[0-9]+")


def parse_content_length(value: str) -> int:
    """
    Parse a Content-Length value.

    Returns the sentinel -1 for anything that is not a plain non-negative
    integer. A bad length is treated like a missing one, not as an error.
    """
    if _DIGITS.fullmatch(value):
        return int(value)
    logger.warning(f"Error parsing content-length {value!r}")
    return NO_CONTENT_LENGTH


def _store(field_name: str) -> HeaderSetter:
    def setter(fields: Dict[str, object], value: str) -> None:
        fields[field_name] = value
    return setter


def _store_content_length(fields: Dict[str, object], value: str) -> None:
    fields["content_length"] = parse_content_length(value)


_SETTERS: Dict[HeaderName, HeaderSetter] = {
    HeaderName.HOST: _store("host"),
    HeaderName.USER_AGENT: _store("user_agent"),
    HeaderName.ACCEPT: _store("accept"),
    HeaderName.CONTENT_TYPE: _store("content_type"),
    HeaderName.CONTENT_LENGTH: _store_content_length,
    HeaderName.ACCEPT_ENCODING: _store("accept_encoding"),
}


def header_setter(name: str) -> Optional[HeaderSetter]:
    """Return the field setter for a header name, or None if it is not kept."""
    header = HeaderName.lookup(name)
    if header is None:
        return None
    return _SETTERS[header]


# =============================================================================
# PARSER
# =============================================================================

class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    The parser is stateless between calls, so one instance can be shared by
    every worker thread.

    Usage:
        parser = RequestParser()
        request = parser.parse(raw_bytes, ("127.0.0.1", 54321))
    """

    HEADER_SEPARATOR = ": "

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """
        Args:
            buffer_size: Chunk size the line reader pulls from the input.
        """
        self.buffer_size = buffer_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse one complete request.

        Args:
            data: Raw bytes captured from the connection.
            client_address: Peer (ip, port) for logging.

        Returns:
            The parsed HTTPRequest.

        Raises:
            HTTPParseError: If the request line is malformed, the head is
                            cut short, or the declared body is incomplete.
        """
        reader = LineReader(io.BytesIO(data), self.buffer_size)

        # ─────────────────────────────────────────────────────────────────
        # REQUEST LINE
        # ─────────────────────────────────────────────────────────────────
        raw_line = reader.read_line()
        if raw_line is None:
            raise HTTPParseError("empty request")
        line = raw_line.decode(TEXT_ENCODING, TEXT_ERRORS)

        parts = line.split(" ", 2)
        if len(parts) < 3:
            logger.debug(f"Error parsing line {line!r}. Missing part")
            raise HTTPParseError("missing part when parsing line")
        method, target, version = parts

        # ─────────────────────────────────────────────────────────────────
        # HEADERS
        # ─────────────────────────────────────────────────────────────────
        fields: Dict[str, object] = {}
        self._parse_headers(reader, fields)

        # ─────────────────────────────────────────────────────────────────
        # BODY
        # ─────────────────────────────────────────────────────────────────
        content_length = fields.get("content_length", NO_CONTENT_LENGTH)
        fields["body"] = self._read_body(reader, content_length)

        return HTTPRequest(
            method=method,
            target=target,
            version=version,
            line=line,
            client_address=client_address,
            **fields,
        )

    def _parse_headers(self, reader: LineReader, fields: Dict[str, object]) -> None:
        """Read header lines up to the empty line, storing the known ones."""
        while True:
            raw = reader.read_line()
            if raw is None:
                raise HTTPParseError("request ended before the end of the headers")
            if not raw:
                return  # Empty line: end of headers

            line = raw.decode(TEXT_ENCODING, TEXT_ERRORS)
            name, sep, value = line.partition(self.HEADER_SEPARATOR)
            if not sep:
                logger.warning(f"Ignoring malformed header line: {line!r}")
                continue

            setter = header_setter(name)
            if setter is None:
                logger.debug(f"Ignoring unknown header: {name}")
                continue
            setter(fields, value)

    def _read_body(self, reader: LineReader, content_length: int) -> bytes:
        if content_length != NO_CONTENT_LENGTH:
            try:
                return reader.read_exact(content_length)
            except EOFError as e:
                raise HTTPParseError(f"incomplete body: {e}") from e

        # No usable length: take at most one more line, if there is one
        try:
            line = reader.read_line()
        except OSError as e:
            raise HTTPParseError(f"error reading body: {e}") from e
        return line if line is not None else b""


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Parse an HTTP request with a default RequestParser.

    Use RequestParser directly to reuse one configured instance.
    """
    return RequestParser().parse(data, client_address)
