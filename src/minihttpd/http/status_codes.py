"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with three statuses:

    200  the file (or the form echo) follows
    404  the requested file does not exist, 404.htm follows
    500  something failed while handling the request, 500.htm follows

=============================================================================
STATUS LINE FORMAT
=============================================================================

Status lines separate the code and the reason phrase with a slash:

    HTTP/1.0 200/OK
    HTTP/1.0 404/Object Not Found
    HTTP/1.0 500/Internal Server Error

This is not the RFC 1945 form ("HTTP/1.0 200 OK"). Existing clients of
this server expect the slash, so the lines are kept byte-for-byte.

=============================================================================
"""

from enum import IntEnum


HTTP_VERSION = "HTTP/1.0"


class HTTPStatus(IntEnum):
    """
    Response status codes used by the server.

    IntEnum, so statuses compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.status_line
        'HTTP/1.0 404/Object Not Found'
    """

    OK = 200
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """Reason phrase as it appears on the wire."""
        return _STATUS_PHRASES[self]

    @property
    def status_line(self) -> str:
        """The literal status line, e.g. 'HTTP/1.0 200/OK'."""
        return f"{HTTP_VERSION} {self.value}/{self.phrase}"


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Object Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
