"""
Error kinds raised while handling a connection.

Every one of these propagates up to the connection boundary
(HTTPServer.serve), where it is turned into a 500 response. A missing
requested file is not an error: file resolution returns None and the
handler answers 404 on its own.

    ServerError
    ├── MalformedRequestError   stream ended before the blank line
    ├── MissingErrorPageError   404.htm / 500.htm is not there
    ├── ReadError               socket read failed or came up short
    └── WriteError              socket write failed
"""


class ServerError(Exception):
    """Base class for per-connection failures."""


class MalformedRequestError(ServerError):
    """The client closed the stream before the header terminator."""

    def __init__(self, received: str = ""):
        self.received = received
        super().__init__(
            f"Connection closed before end of headers ({len(received)} bytes received)"
        )


class MissingErrorPageError(ServerError):
    """An error page under the document root could not be found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Error page not found: {path}")


class ReadError(ServerError):
    """Reading from the client failed."""


class WriteError(ServerError):
    """Writing to the client failed."""
