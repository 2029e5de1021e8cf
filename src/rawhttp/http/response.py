"""
=============================================================================
HTTP RESPONSE ENCODER
=============================================================================

Builds wire bytes from an HTTPResponse.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                  ← STATUS LINE (from table)   │
    │   Content-Encoding: gzip\r\n           ← only if encoded            │
    │   Content-Type: text/plain\r\n         ← only if set                │
    │   Content-Length: 5\r\n                ← only if body present       │
    │   \r\n                                 ← EMPTY LINE                 │
    │   hello                                ← BODY (no trailing CRLF)    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

All three headers depend on the body being PRESENT. ``body=None`` means
"no body": none of them are written. ``body=b""`` is a present, empty body
and still gets ``Content-Length: 0``.

=============================================================================
CONTENT ENCODING
=============================================================================

Accept-Encoding is negotiated, not applied. When the client asks for gzip
we answer with ``Content-Encoding: gzip`` and the body bytes unchanged.
Any other label is dropped: the response goes out without a
Content-Encoding header and a warning is logged.

=============================================================================
MUTATING VS NON-MUTATING ENCODE
=============================================================================

    to_bytes(mutate=True)    encode() runs on THIS object. Cheap.
                             Use for responses built for one request.

    to_bytes(mutate=False)   encode() runs on a clone(). The
                             original is never touched, so a shared
                             template can be serialized from several
                             threads at once without locks.

Templates are marked ``shared=True`` and default to the safe path.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from ..errors import ServerError, UnsupportedEncodingError
from .status import CRLF, TEXT_ENCODING, TEXT_ERRORS, status_line


logger = logging.getLogger(__name__)

SUPPORTED_ENCODING = "gzip"


@dataclass
class HTTPResponse:
    """
    Mutable response builder.

    Attributes:
        status_code:     Nominal status. Unknown codes are written as 500.
        content_type:    Content-Type value, "" to omit the header.
        encoding_method: Encoding the client asked for (from Accept-Encoding).
        encoded:         True once encode() accepted the encoding method.
        body:            Body bytes, or None for "no body".
        shared:          Template reused across requests; serialize it
                         through the non-mutating path.
    """

    status_code: int = 200
    content_type: str = ""
    encoding_method: str = ""
    encoded: bool = False
    body: Optional[bytes] = None
    shared: bool = field(default=False, compare=False)

    @property
    def content_length(self) -> int:
        """Body size in bytes, 0 when there is no body."""
        if self.body is None:
            return 0
        return len(self.body)

    def set_body(self, body: Union[str, bytes, None]) -> "HTTPResponse":
        """Set the body, encoding str as UTF-8. Returns self for chaining."""
        if isinstance(body, str):
            body = body.encode(TEXT_ENCODING, TEXT_ERRORS)
        self.body = body
        return self

    # =========================================================================
    # COPYING
    # =========================================================================

    def clone(self) -> "HTTPResponse":
        """
        Return an owned deep copy.

        The body is copied into a fresh buffer, an absent body stays absent,
        and the copy is never shared.
        """
        return HTTPResponse(
            status_code=self.status_code,
            content_type=self.content_type,
            encoding_method=self.encoding_method,
            encoded=self.encoded,
            body=None if self.body is None else bytes(bytearray(self.body)),
        )

    # =========================================================================
    # ENCODING
    # =========================================================================

    def encode(self) -> None:
        """
        Apply the requested encoding in place.

        Does nothing when there is no body or no encoding was requested.

        Raises:
            UnsupportedEncodingError: The label is not supported. The
                encoding method has been cleared by then, so the response
                can still be sent unencoded.
        """
        if self.body is None or not self.encoding_method:
            return

        method = self.encoding_method.strip()
        if method != SUPPORTED_ENCODING:
            self.encoding_method = ""
            self.encoded = False
            raise UnsupportedEncodingError(method)

        # Labelled only: the body is sent as-is
        self.encoding_method = method
        self.encoded = True

    def safe_encode(self) -> "HTTPResponse":
        """
        Encode a clone and return it, leaving this response untouched.

        Raises:
            UnsupportedEncodingError: As encode().
        """
        copy = self.clone()
        copy.encode()
        return copy

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_bytes(self, mutate: Optional[bool] = None) -> bytes:
        """
        Serialize the response to wire bytes.

        Args:
            mutate: Whether encoding may modify this object. None picks the
                    safe path for shared templates and the in-place path
                    otherwise.

        Returns:
            Status line, headers, empty line and body.

        Raises:
            ServerError: If encoding fails with a fatal error kind.
        """
        if mutate is None:
            mutate = not self.shared

        resp = self if mutate else self.clone()
        try:
            resp.encode()
        except ServerError as e:
            if e.kind.fatal:
                logger.error(f"Fatal error while encoding: {e}")
                raise
            logger.warning(f"Non fatal error while encoding: {e}")

        lines = [status_line(resp.status_code)]
        if resp.body is not None:
            if resp.encoded:
                lines.append(f"Content-Encoding: {resp.encoding_method}{CRLF}")
            if resp.content_type:
                lines.append(f"Content-Type: {resp.content_type}{CRLF}")
            lines.append(f"Content-Length: {resp.content_length}{CRLF}")
        lines.append(CRLF)

        head = "".join(lines).encode(TEXT_ENCODING, TEXT_ERRORS)
        if resp.body is None:
            return head
        return head + resp.body


# =============================================================================
# SHARED TEMPLATES
# =============================================================================
# Built once, reused for every request that needs them. Never mutate these;
# to_bytes() serializes them through the non-mutating path.

PING_RESPONSE = HTTPResponse(status_code=200, shared=True)
NOT_IMPLEMENTED_RESPONSE = HTTPResponse(status_code=501, shared=True)
