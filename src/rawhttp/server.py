"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST LIFECYCLE                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer.accept()                                              │
    │        │                                                             │
    │        ▼                                                             │
    │   new worker thread ─────────────────────────────────────────┐      │
    │        │                                                      │      │
    │        ├─ conn.read_message()     transport error → close     │      │
    │        ├─ parser.parse()          parse error     → close     │      │
    │        ├─ dispatcher.handle()                                 │      │
    │        ├─ response.to_bytes()                                 │      │
    │        ├─ conn.send()                                         │      │
    │        ├─ access log                                          │      │
    │        └─ conn.close()                                        │      │
    │                                                               │      │
    └───────────────────────────────────────────────────────────────┘──────┘

One request per connection. A request that cannot be read or parsed gets
NO response; the connection is simply closed. Nothing a single connection
does can stop the accept loop.

Workers share only read-only state: the config, the parser, the file store
root and the status table. Shared response templates are serialized
through the non-mutating encoder path.

=============================================================================
"""

import logging
import threading
import time
from typing import Optional, Tuple

from .access_log import AccessLogEntry, access_timestamp, log_access
from .config import ServerConfig
from .core import Connection, ConnectionState, SocketServer
from .errors import HTTPParseError, TransportError
from .handlers import FileStore, RouteDispatcher
from .http import RequestParser


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    The rawhttp server.

    Usage:
        server = HTTPServer(ServerConfig(directory="/srv/files"))
        server.run()   # Blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults are used if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()
        self._store = FileStore(self.config.directory)
        self._dispatcher = RouteDispatcher(self._store)

        self._workers: set[threading.Thread] = set()
        self._workers_lock = threading.Lock()

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def served_directory(self) -> str:
        return str(self._store.root)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start serving (blocking).

        Args:
            setup_logging: Configure the root logger from the config.
                           Tests and embedders that manage logging
                           themselves pass False.
        """
        if setup_logging:
            self._setup_logging()

        logger.info(f"Serving files from directory: {self.served_directory}")
        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._join_workers(timeout=self.config.timeout)
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. run() returns within about a second."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is listening."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("rawhttp").setLevel(level)

    def _join_workers(self, timeout: float):
        """Give in-flight connections up to ``timeout`` seconds to finish."""
        with self._workers_lock:
            workers = list(self._workers)
        deadline = time.monotonic() + timeout
        for worker in workers:
            worker.join(max(0.0, deadline - time.monotonic()))

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Start a worker thread for ``conn``. Called from the accept loop."""
        worker = threading.Thread(
            target=self._run_worker,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        with self._workers_lock:
            self._workers.add(worker)
        worker.start()

    def _run_worker(self, conn: Connection):
        try:
            self.process_connection(conn)
        except Exception as e:
            logger.exception(f"[{conn.id}] Unhandled error: {e}")
        finally:
            with self._workers_lock:
                self._workers.discard(threading.current_thread())

    def process_connection(self, conn: Connection):
        """
        Serve exactly one request on ``conn`` and close it.

        Runs in a worker thread. Every failure ends here: it is logged and
        the connection is closed, with no partial response ever written.
        """
        with conn:
            start_time = time.time()
            logger.debug(f"[{conn.id}] Handling new connection from {conn.client_ip}")

            try:
                message = conn.read_message()
            except TransportError as e:
                logger.warning(f"[{conn.id}] There was an error reading from connection. Closing. {e}")
                return

            try:
                request = self._parser.parse(message, conn.address)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] There was an error parsing the request. Discarding. {e}")
                return

            conn.state = ConnectionState.PROCESSING
            try:
                response = self._dispatcher.handle(request)
                payload = response.to_bytes()
            except Exception as e:
                logger.exception(f"[{conn.id}] Unhandled error while generating response: {e}")
                return

            if not conn.send(payload):
                return

            log_access(
                AccessLogEntry(
                    request_id=conn.id,
                    method=request.method,
                    target=request.target,
                    client_ip=conn.client_ip,
                    user_agent=request.user_agent or "-",
                    status_code=response.status_code,
                    content_length=response.content_length,
                    duration_ms=(time.time() - start_time) * 1000,
                    timestamp=access_timestamp(),
                ),
                log_format=self.config.log_format,
            )


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """Factory for an HTTPServer."""
    return HTTPServer(config)
