"""HTTP protocol: line reading, request parsing, response encoding, status codes."""

from ..errors import HTTPParseError, UnsupportedEncodingError
from .line_reader import LineReader
from .request import HTTPRequest, RequestParser, parse_request
from .response import HTTPResponse
from .status import HTTPStatus, status_line

__all__ = [
    "HTTPParseError",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPStatus",
    "LineReader",
    "RequestParser",
    "UnsupportedEncodingError",
    "parse_request",
    "status_line",
]
