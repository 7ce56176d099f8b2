"""
=============================================================================
MAIN HTTP SERVER
=============================================================================

Ties the pieces together: the socket server accepts, this module parses,
dispatches, and turns any failure into a 500.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP SERVER ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        │  (Orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────────┐    │
    │    │ SocketServer │    │RequestParser │    │     Handlers     │    │
    │    │ (accept +    │    │ (head → Req) │    │ GET/HEAD/POST/500│    │
    │    │  threads)    │    └──────────────┘    └──────────────────┘    │
    │    └──────────────┘                                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ONE CONNECTION, START TO FINISH
=============================================================================

    accept()                                   ACCEPTED
      │
      ├── read lines until "\r\n"              PARSING
      ├── method → handler                     DISPATCHING
      ├── handler writes header [+ body]       RESPONDING
      └── close, log                           CLOSED

    Any exception in the middle three states:
      └── 500 header + 500.htm + traceback     ERROR_REPORTING → CLOSED

Failures are caught once, here. Nothing a single connection does can stop
the accept loop or disturb another connection.

A request whose method is not GET, HEAD or POST gets no response at all;
the connection is closed when its thread finishes.

=============================================================================
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from .access_log import AccessLog, setup_logging, teardown_logging
from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState
from .handlers import StaticFileHandler, FormHandler, ErrorReporter
from .http import Request, RequestMethod, RequestParser


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    HTTP/1.0 static file and form echo server.

    =========================================================================
    USAGE
    =========================================================================

        config = ServerConfig(port=8080, base_path="/var/www")
        server = HTTPServer(config)
        server.run()   # blocks until Ctrl+C / SIGTERM / shutdown()

    =========================================================================
    """

    def __init__(self, config: ServerConfig, log: Optional[Callable[..., None]] = None):
        """
        Args:
            config: Server configuration. Validated here.
            log: Access log sink, log(*messages). Defaults to AccessLog().
        """
        config.validate()
        self.config = config
        self.log = log or AccessLog()

        self._socket_server = SocketServer(config)
        self._parser = RequestParser()

        static = StaticFileHandler(config, self.log)
        self._handlers: Dict[RequestMethod, Callable[[Connection, Request], object]] = {
            RequestMethod.GET: static.handle_get,
            RequestMethod.HEAD: static.handle_head,
            RequestMethod.POST: FormHandler(config, self.log).handle,
        }
        self._errors = ErrorReporter(config, self.log)

        self._log_handler: Optional[logging.Handler] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Returns after shutdown() or a SIGINT/SIGTERM.
        """
        self._running = True
        self._log_handler = setup_logging(self.config)

        self.log(
            f"Server started at {datetime.now().astimezone():%Y-%m-%d %H:%M:%S %z}",
            f"base path: {self.config.base_path}",
            f"port: {self.config.port}",
        )

        try:
            self._socket_server.start(self.serve)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Stop accepting connections. run() returns shortly after."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is listening."""
        return self._socket_server.wait_until_ready(timeout)

    def _shutdown(self):
        logger.info("Server stopped")
        self._running = False
        teardown_logging(self._log_handler)
        self._log_handler = None

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def serve(self, conn: Connection):
        """
        Handle one connection (runs in the connection's own thread).

        The connection is closed on every path out of here.
        """
        with conn:
            try:
                conn.state = ConnectionState.PARSING
                raw_text = self._parser.read_header_block(conn)
                request = self._parser.parse(raw_text)

                conn.state = ConnectionState.DISPATCHING
                handler = self._handlers.get(request.method)
                if handler is None:
                    logger.warning(f"[{conn.id}] No handler for request: {request.request_line!r}")
                    return

                conn.state = ConnectionState.RESPONDING
                handler(conn, request)

            except Exception as e:
                try:
                    self._errors.report(conn, e)
                except Exception:
                    logger.exception(f"[{conn.id}] Could not send error response")


def create_app(port: int, base_path: str, **options) -> HTTPServer:
    """
    Create a server for `base_path` on `port`.

    Extra keyword arguments are passed to ServerConfig.

    Example:
        create_app(8080, "/var/www", max_connections=64).run()
    """
    return HTTPServer(ServerConfig(port=port, base_path=base_path, **options))
