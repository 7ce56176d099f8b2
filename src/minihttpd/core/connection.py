"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the lifetime of one request.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

This is HTTP/1.0 without keep-alive. Every connection carries exactly one
request and one response, then it is closed:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONNECTION LIFECYCLE                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ACCEPTED ──► PARSING ──► DISPATCHING ──► RESPONDING ──► CLOSED    │
    │                   │              │               │           ▲       │
    │                   └──────────────┴───────────────┘           │       │
    │                                  │  exception                │       │
    │                                  ▼                           │       │
    │                          ERROR_REPORTING ────────────────────┘       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The thread that accepted the connection owns it alone; nothing else reads
from or writes to it.

=============================================================================
LINE READING OVER TCP
=============================================================================

TCP is a byte stream. One recv() may return half a line, or a whole
request plus the start of a POST body:

    recv() → "POST /f HTTP/1.0\r\nContent-Le"
    recv() → "ngth: 7\r\n\r\na=1&b=2"

The socket is wrapped in a buffered binary file (socket.makefile("rb")),
so readline() returns whole lines and read(n) returns exactly n bytes.
Header lines and body come out of the SAME buffer: bytes read past the
terminator are not lost before the POST handler asks for the body.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional
import uuid

from ..errors import ReadError, WriteError


logger = logging.getLogger(__name__)


# close() reads leftover client bytes for at most this long, and this much
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""
    ACCEPTED = "accepted"              # Just accepted, nothing read yet
    PARSING = "parsing"                # Reading the request head
    DISPATCHING = "dispatching"        # Head parsed, picking a handler
    RESPONDING = "responding"          # Handler is writing the response
    ERROR_REPORTING = "error_reporting"  # Writing the 500 response
    CLOSED = "closed"                  # Socket released


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier for log lines.
        state: Current lifecycle state.
        created_at: Timestamp when the connection was accepted.
        timeout: Socket timeout in seconds, None to block forever.
        bytes_sent: Total bytes written to the client.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.ACCEPTED
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = None
    bytes_sent: int = 0

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)
        self._reader = self.socket.makefile("rb")

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def readline(self) -> bytes:
        """
        Read one line, newline included.

        Returns:
            The line, or b"" if the client closed the stream.

        Raises:
            ReadError: The socket failed or timed out.
        """
        try:
            return self._reader.readline()
        except OSError as e:
            raise ReadError(f"[{self.id}] Read failed: {e}") from e

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly `size` bytes.

        Blocks until they have all arrived.

        Raises:
            ReadError: The stream ended early, or the socket failed.
        """
        try:
            data = self._reader.read(size)
        except OSError as e:
            raise ReadError(f"[{self.id}] Read failed: {e}") from e

        if len(data) < size:
            raise ReadError(
                f"[{self.id}] Expected {size} bytes, connection closed after {len(data)}"
            )
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def write(self, data: bytes) -> None:
        """
        Write all of `data` to the client.

        sendall() either sends everything or raises, so a short write never
        goes unnoticed.

        Raises:
            WriteError: The client went away or the socket failed.
        """
        try:
            self.socket.sendall(data)
        except OSError as e:
            raise WriteError(f"[{self.id}] Send failed: {e}") from e
        self.bytes_sent += len(data)

    def write_text(self, text: str) -> None:
        """Write text, encoded the same way request text was decoded."""
        self.write(text.encode("utf-8", "surrogateescape"))

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once; never raises.

        1. shutdown(SHUT_WR): the client sees end-of-response
        2. drain what the client still sends, up to DRAIN_TIMEOUT seconds
           and DRAIN_LIMIT bytes in total
        3. close(): release the descriptor
        """
        if self.closed:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            # Unread request bytes would turn the close into a reset
            deadline = time.monotonic() + DRAIN_TIMEOUT
            drained = 0
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass

        try:
            if self._reader is not None:
                self._reader.close()
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s, {self.bytes_sent} bytes sent")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Ensure the connection is closed."""
        self.close()
        return False
