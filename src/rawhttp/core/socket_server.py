"""
=============================================================================
SOCKET SERVER
=============================================================================

The listening side: create the TCP socket, bind, listen, and hand every
accepted client to a callback wrapped in a Connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SOCKET SERVER LIFECYCLE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   socket() → setsockopt(SO_REUSEADDR) → bind() → listen()           │
    │                                                   │                  │
    │                                                   ▼                  │
    │                                   ┌──────────────────────────┐       │
    │                                   │ while running:           │       │
    │                                   │   accept()  (1s poll)    │       │
    │                                   │   handler(Connection)    │       │
    │                                   └──────────────────────────┘       │
    │                                                   │                  │
    │                             shutdown() / SIGINT / SIGTERM            │
    │                                                   ▼                  │
    │                                          close listening socket      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The accept() timeout exists only so the loop can notice shutdown() in
under a second. A failing client never stops the loop; only an error on
the listening socket itself does.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    TCP listener that feeds accepted connections to a handler.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, read limits).

        The socket is created lazily in start().
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._original_handlers: dict = {}
        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        Before start() this is the configured address; afterwards it is the
        real one, which matters when port 0 asked the OS to pick.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting right after a stop should not fail with
        # "Address already in use" while old sockets sit in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """
        Route SIGINT/SIGTERM to shutdown().

        Python only allows installing handlers from the main thread; when
        the server runs elsewhere (tests, embedding) the caller is expected
        to call shutdown() itself.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Args:
            connection_handler: Called with each accepted Connection. It
                                must not block; HTTPServer hands the
                                connection to a worker thread.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._setup_signals()

        logger.info(f"Server listening on {self.address[0]}:{self.address[1]}")
        self._ready.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Poll tick, re-check _running
            except OSError as e:
                if self._running:
                    logger.error(f"Error accepting connection: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_message_size=self.config.max_message_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Stop the accept loop. Idempotent, callable from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
        self._ready.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready.wait(timeout)
