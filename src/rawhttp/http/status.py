"""
=============================================================================
HTTP STATUS LINES
=============================================================================

The server only ever answers with a handful of status codes. Each one maps
to a complete, pre-formatted status line:

    ┌──────┬───────────────────────────────────────┐
    │ CODE │ STATUS LINE                           │
    ├──────┼───────────────────────────────────────┤
    │ 200  │ HTTP/1.1 200 OK                       │
    │ 201  │ HTTP/1.1 201 Created                  │
    │ 400  │ HTTP/1.1 400 Bad Request              │
    │ 404  │ HTTP/1.1 404 Not Found                │
    │ 500  │ HTTP/1.1 500 Internal Server Error    │
    │ 501  │ HTTP/1.1 501 Not Implemented          │
    └──────┴───────────────────────────────────────┘

Any other code is written as the 500 line. A handler may set any integer
it likes as the nominal status, but the bytes on the wire always carry a
status line from this table.

The table is a read-only mapping built at import time and shared by every
worker thread.
=============================================================================
"""

from enum import IntEnum
from types import MappingProxyType
from typing import Mapping

HTTP_VERSION = "HTTP/1.1"
CRLF = "\r\n"

# Request text is decoded with surrogateescape and encoded back the same way,
# so bytes that are not valid UTF-8 survive the round trip unchanged
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


class HTTPStatus(IntEnum):
    """
    Status codes the server knows how to write.

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501

    @property
    def phrase(self) -> str:
        return _PHRASES[self]


_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
}

STATUS_LINES: Mapping[int, str] = MappingProxyType({
    int(status): f"{HTTP_VERSION} {int(status)} {status.phrase}" for status in HTTPStatus
})

FALLBACK_STATUS = HTTPStatus.INTERNAL_SERVER_ERROR


def status_line(code: int) -> str:
    """
    Return the CRLF-terminated status line for ``code``.

    Unknown codes resolve to the 500 line:

        >>> status_line(999)
        'HTTP/1.1 500 Internal Server Error\\r\\n'
    """
    line = STATUS_LINES.get(code)
    if line is None:
        line = STATUS_LINES[FALLBACK_STATUS]
    return line + CRLF
