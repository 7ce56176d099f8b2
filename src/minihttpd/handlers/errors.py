"""
=============================================================================
ERROR REPORTING
=============================================================================

The one place failures turn into responses. Whatever goes wrong while a
connection is parsed, dispatched or answered ends up here:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    HTTP/1.0 500/Internal Server Error\r\n                           │
    │    Server: My Server\r\n                                            │
    │    \r\n                                                              │
    │    <html>...contents of 500.htm...</html>                           │
    │    Connection closed before end of headers (0 bytes received)       │
    │    Traceback (most recent call last):                               │
    │      File ".../request.py", line 120, in read_header_block          │
    │    ...                                                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The exception text after the page is a debugging aid. It exposes server
internals to the client; set expose_tracebacks=False to leave it out.

If the failure happened mid-response, the 500 header simply follows
whatever was already sent. Nothing is retried.

=============================================================================
"""

import logging
import traceback
from typing import Callable, List

from ..config import ServerConfig
from ..core.connection import Connection, ConnectionState
from ..http.response import ResponseHeader, internal_error
from .static import stream_page


logger = logging.getLogger(__name__)


def describe_exception(exc: BaseException) -> List[str]:
    """The exception message followed by its traceback, one entry per frame."""
    frames = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return [str(exc)] + [frame.rstrip("\n") for frame in frames]


class ErrorReporter:
    """Writes the 500 response for a failed connection."""

    def __init__(self, config: ServerConfig, log: Callable[..., None]):
        self.config = config
        self.log = log

    def report(self, conn: Connection, exc: BaseException) -> ResponseHeader:
        """
        Send the 500 response for `exc` and close the connection.

        Raises:
            MissingErrorPageError: 500.htm does not exist.
            WriteError: The client is gone.
        """
        conn.state = ConnectionState.ERROR_REPORTING
        logger.warning(f"[{conn.id}] Request failed: {type(exc).__name__}: {exc}")

        details = describe_exception(exc)

        header = internal_error(self.config.server_name)
        conn.write(header.to_bytes())
        stream_page(conn, self.config.error_path, self.config.chunk_size)
        if self.config.expose_tracebacks:
            conn.write_text("\n".join(details) + "\n")

        conn.close()
        self.log(*details)
        self.log("===RESPONSE===", header.to_text())
        return header
