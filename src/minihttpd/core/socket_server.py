"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Accepts TCP connections and gives each one its own thread.

=============================================================================
THREAD PER CONNECTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept loop (one thread)                                          │
    │        │                                                             │
    │        ├── accept() ──► Connection ──► Thread ──► handler(conn)     │
    │        ├── accept() ──► Connection ──► Thread ──► handler(conn)     │
    │        └── accept() ──► Connection ──► Thread ──► handler(conn)     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The accept loop only ever blocks in accept(). Handler threads share
nothing but the read-only configuration and the access log.

By default there is no limit on how many handler threads run at once. A
client that connects and never finishes its request holds a thread for as
long as it stays connected. Two settings change that:

    max_connections   accept loop waits for a free slot before accepting
    read_timeout      a stalled read fails and the client gets a 500

Both are off unless configured.

=============================================================================
SIGNAL HANDLING FOR GRACEFUL SHUTDOWN
=============================================================================

SIGINT (Ctrl+C) and SIGTERM stop the accept loop. Handler threads are
daemons: requests in flight at exit are not waited for.

Signal handlers can only be installed from the main thread. When the
server runs in a background thread (as in the test suite), stop it with
shutdown() instead.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


# How often the accept loop wakes up to check whether it should stop
POLL_INTERVAL = 1.0


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        The socket is created in start(), not here.
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening; cleared again on shutdown
        self._ready_event = threading.Event()

        # Admission gate, only when a limit is configured
        self._slots: Optional[threading.BoundedSemaphore] = None
        if config.max_connections:
            self._slots = threading.BoundedSemaphore(config.max_connections)

        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        With port 0 in the configuration this is the port the OS picked.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Avoid "Address already in use" while the old socket is in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # accept() wakes up every POLL_INTERVAL to check self._running
        sock.settimeout(POLL_INTERVAL)

        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that stop the accept loop."""
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Start accepting connections.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called once per connection, in that
                                connection's own thread. It owns the
                                connection and must close it.
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

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop for accepting connections.

        ┌─────────────────────────────────────────────────────────────────┐
        │                     Accept Loop Flow                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while self._running:                                           │
        │       │                                                          │
        │       ├──► wait for a free slot     (only with max_connections)  │
        │       ├──► accept()                 (1s timeout, then re-check)  │
        │       ├──► Connection(...)                                       │
        │       └──► Thread(connection_handler, conn).start()              │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        while self._running:
            if self._slots is not None and not self._slots.acquire(timeout=POLL_INTERVAL):
                continue

            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                self._release_slot()
                continue
            except OSError as e:
                self._release_slot()
                # Usually means the socket was closed during shutdown
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.read_timeout,
            )

            worker = threading.Thread(
                target=self._run_connection,
                args=(connection_handler, conn),
                name=f"conn-{conn.id}",
                daemon=True,
            )
            worker.start()

    def _run_connection(self, connection_handler: Callable[[Connection], None], conn: Connection):
        try:
            connection_handler(conn)
        except Exception:
            # The handler converts failures into 500 responses itself;
            # anything reaching here must not take the thread down silently
            logger.exception(f"[{conn.id}] Unhandled error in connection thread")
            conn.close()
        finally:
            self._release_slot()

    def _release_slot(self):
        if self._slots is not None:
            self._slots.release()

    def shutdown(self):
        """
        Stop accepting connections.

        Idempotent; callable from a signal handler or another thread.
        The accept loop exits within POLL_INTERVAL seconds.
        """
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

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)
