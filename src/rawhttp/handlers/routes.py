"""
=============================================================================
ROUTE DISPATCHER
=============================================================================

Maps (method, target) to one of a fixed set of behaviours. There is no
route registration: the table below IS the application.

    ┌──────────┬──────────────────┬───────────────────────────────────────┐
    │ METHOD   │ TARGET           │ RESPONSE                              │
    ├──────────┼──────────────────┼───────────────────────────────────────┤
    │ any      │ /                │ 200, no body                          │
    │ GET      │ /echo/<text>     │ 200 text/plain, body = <text>         │
    │ GET      │ /user-agent      │ 200 text/plain, body = User-Agent     │
    │ GET      │ /files/<name>    │ 200 octet-stream | 404 | 500          │
    │ GET      │ anything else    │ 404                                   │
    │ POST     │ /files/<name>    │ 201 | 500                             │
    │ POST     │ anything else    │ 400                                   │
    │ other    │ anything         │ 501                                   │
    └──────────┴──────────────────┴───────────────────────────────────────┘

Targets are split on the first two "/" only:

    "/echo/a/b/c".split("/", 2)  →  ["", "echo", "a/b/c"]

so <text> and <name> may themselves contain slashes.

GET responses carry the client's Accept-Encoding as the requested encoding
method; the encoder decides whether it can honour it.

=============================================================================
"""

import logging
from typing import Callable, Dict, Optional

from ..errors import ServerError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, NOT_IMPLEMENTED_RESPONSE, PING_RESPONSE
from ..http.status import HTTPStatus
from .files import FileStore


logger = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain"
OCTET_STREAM = "application/octet-stream"

Handler = Callable[[HTTPRequest], HTTPResponse]


def split_target(target: str) -> list[str]:
    """Split a target into at most three parts on "/"."""
    return target.split("/", 2)


class RouteDispatcher:
    """
    Dispatches parsed requests to the fixed route table.

    Usage:
        dispatcher = RouteDispatcher(FileStore("/srv/files"))
        response = dispatcher.handle(request)
        wire = response.to_bytes()
    """

    def __init__(self, store: FileStore):
        self.store = store
        self._method_handlers: Dict[str, Handler] = {
            "GET": self._handle_get,
            "POST": self._handle_post,
        }

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Produce the response for ``request``.

        Shared templates may be returned; serialize with to_bytes(), which
        never mutates them.
        """
        handler = self._method_handlers.get(request.method)
        if handler is None:
            logger.info(f"Unsupported HTTP method: {request.method}")
            return NOT_IMPLEMENTED_RESPONSE

        universal = self._handle_universal(request)
        if universal is not None:
            return universal
        return handler(request)

    def dispatch(self, request: HTTPRequest) -> bytes:
        """Handle ``request`` and serialize the response."""
        return self.handle(request).to_bytes()

    # =========================================================================
    # ROUTES
    # =========================================================================

    def _handle_universal(self, request: HTTPRequest) -> Optional[HTTPResponse]:
        """Targets answered the same way for every supported method."""
        if request.target == "/":
            return PING_RESPONSE
        return None

    def _handle_get(self, request: HTTPRequest) -> HTTPResponse:
        res = HTTPResponse(encoding_method=request.accept_encoding)

        parts = split_target(request.target)
        if len(parts) < 2:
            return _bad_request(res, "Invalid target structure")

        route = parts[1]
        if route == "echo":
            if len(parts) < 3:
                return _bad_request(res, "Invalid echo target structure\n")
            res.status_code = HTTPStatus.OK
            res.content_type = TEXT_PLAIN
            res.set_body(parts[2])
        elif route == "user-agent":
            res.status_code = HTTPStatus.OK
            res.content_type = TEXT_PLAIN
            res.set_body(request.user_agent)
        elif route == "files":
            if len(parts) < 3:
                return _bad_request(res, "Invalid file target structure\n")
            self._get_file(res, parts[2])
        else:
            res.status_code = HTTPStatus.NOT_FOUND
        return res

    def _get_file(self, res: HTTPResponse, name: str) -> None:
        try:
            found = self.store.exists(name)
        except ServerError as e:
            if not e.kind.fatal:
                _bad_request(res, "Invalid file target path\n")
                return
            logger.error(f"Error getting file: {e}")
            res.status_code = HTTPStatus.INTERNAL_SERVER_ERROR
            return

        if not found:
            res.status_code = HTTPStatus.NOT_FOUND
            return

        try:
            contents = self.store.read(name)
        except FileNotFoundError:
            # Removed between exists() and read()
            res.status_code = HTTPStatus.NOT_FOUND
            return
        except ServerError as e:
            logger.error(f"Error reading file: {e}")
            res.status_code = HTTPStatus.INTERNAL_SERVER_ERROR
            res.set_body("There was an error reading the requested file\n")
            return

        res.status_code = HTTPStatus.OK
        res.content_type = OCTET_STREAM
        res.set_body(contents)

    def _handle_post(self, request: HTTPRequest) -> HTTPResponse:
        res = HTTPResponse()

        parts = split_target(request.target)
        if len(parts) < 2:
            return _bad_request(res, "Invalid target structure\n")

        if parts[1] != "files":
            return _bad_request(res, "Invalid target")
        if len(parts) < 3:
            return _bad_request(res, "Invalid files target path\n")

        try:
            self.store.write(parts[2], request.body)
        except ServerError as e:
            if not e.kind.fatal:
                return _bad_request(res, "Invalid files target path\n")
            logger.error(f"Error writing file {parts[2]}: {e}")
            res.status_code = HTTPStatus.INTERNAL_SERVER_ERROR
            return res

        res.status_code = HTTPStatus.CREATED
        return res


def _bad_request(res: HTTPResponse, message: str) -> HTTPResponse:
    res.status_code = HTTPStatus.BAD_REQUEST
    res.set_body(message)
    return res
