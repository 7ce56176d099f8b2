"""
=============================================================================
HTTP RESPONSE HEADERS
=============================================================================

Builds the header block written at the start of every response.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP/1.0 RESPONSE                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    HTTP/1.0 200/OK\r\n                        ← status line          │
    │    Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n                          │
    │    Server: My Server\r\n                                            │
    │    Last-modified: Sun, 18 Oct 2026 09:30:00 GMT\r\n                 │
    │    Content-type: text/css\r\n                                       │
    │    Content-Length: 1234\r\n                                         │
    │    \r\n                                       ← end of headers       │
    │    body.h1 { color: red } ...                 ← file bytes           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Which headers appear depends on the outcome:

    ┌──────────────────────┬──────┬────────┬───────────────┬────────────────┐
    │  Outcome             │ Date │ Server │ Last-modified │ Content-type/  │
    │                      │      │        │               │ Content-Length │
    ├──────────────────────┼──────┼────────┼───────────────┼────────────────┤
    │  200 file            │  ✓   │   ✓    │       ✓       │       ✓        │
    │  200 form echo       │  ✓   │   ✓    │               │                │
    │  404                 │      │   ✓    │               │                │
    │  500                 │      │   ✓    │               │                │
    └──────────────────────┴──────┴────────┴───────────────┴────────────────┘

Header names keep their historical casing ("Last-modified", "Content-type").
Header names are case-insensitive in HTTP, but byte-level consumers of this
server rely on the exact text.

The response carries no Content-Length for 404/500/POST bodies; HTTP/1.0
clients read until the server closes the connection.

=============================================================================
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, List

from .status_codes import HTTPStatus


CRLF = "\r\n"


@dataclass(frozen=True)
class ResponseHeader:
    """
    The header block of one response.

    Built once per request outcome and written once. Optional fields that
    are None are left out of the serialized block.
    """

    status: HTTPStatus
    server_name: str
    date: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    content_length: Optional[int] = None

    @property
    def status_line(self) -> str:
        return self.status.status_line

    def lines(self) -> List[str]:
        """Status line followed by 'Name: value' lines, in wire order."""
        lines = [self.status_line]
        if self.date is not None:
            lines.append(f"Date: {format_http_date(self.date)}")
        lines.append(f"Server: {self.server_name}")
        if self.last_modified is not None:
            lines.append(f"Last-modified: {format_http_date(self.last_modified)}")
        if self.content_type is not None:
            lines.append(f"Content-type: {self.content_type}")
        if self.content_length is not None:
            lines.append(f"Content-Length: {self.content_length}")
        return lines

    def to_text(self) -> str:
        """
        Serialize to the header block text.

        Lines are joined with CRLF and the block ends with an empty line:

            HTTP/1.0 404/Object Not Found\\r\\n
            Server: My Server\\r\\n
            \\r\\n
        """
        return CRLF.join(self.lines()) + CRLF + CRLF

    def to_bytes(self) -> bytes:
        return self.to_text().encode("latin-1")


class ResponseBuilder:
    """
    Fluent builder for ResponseHeader.

        header = (ResponseBuilder("My Server")
            .status(HTTPStatus.OK)
            .date(now)
            .content_type("text/css")
            .content_length(1234)
            .build())

    Each method returns self except build().
    """

    def __init__(self, server_name: str):
        self._server_name = server_name
        self._status = HTTPStatus.OK
        self._date: Optional[datetime] = None
        self._last_modified: Optional[datetime] = None
        self._content_type: Optional[str] = None
        self._content_length: Optional[int] = None

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def date(self, when: Optional[datetime] = None) -> "ResponseBuilder":
        """Set the Date header (defaults to the current UTC time)."""
        self._date = when or datetime.now(timezone.utc)
        return self

    def last_modified(self, when: datetime) -> "ResponseBuilder":
        self._last_modified = when
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        self._content_type = content_type
        return self

    def content_length(self, length: int) -> "ResponseBuilder":
        self._content_length = length
        return self

    def build(self) -> ResponseHeader:
        return ResponseHeader(
            status=self._status,
            server_name=self._server_name,
            date=self._date,
            last_modified=self._last_modified,
            content_type=self._content_type,
            content_length=self._content_length,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Mon, 19 Oct 2026 12:00:00 GMT

    Naive datetimes are taken to be UTC already; aware ones are converted.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One function per outcome the handlers produce:
#     file_found(...)    GET/HEAD hit
#     form_echo(...)     POST
#     not_found(...)     GET/HEAD miss
#     internal_error()   any failure
#
# =============================================================================

def file_found(
    server_name: str,
    last_modified: datetime,
    content_type: str,
    content_length: int,
    now: Optional[datetime] = None,
) -> ResponseHeader:
    """200 header for a file that exists: all six lines."""
    return (ResponseBuilder(server_name)
        .status(HTTPStatus.OK)
        .date(now)
        .last_modified(last_modified)
        .content_type(content_type)
        .content_length(content_length)
        .build())


def form_echo(server_name: str, now: Optional[datetime] = None) -> ResponseHeader:
    """200 header for the POST echo: status, Date and Server only."""
    return ResponseBuilder(server_name).status(HTTPStatus.OK).date(now).build()


def not_found(server_name: str) -> ResponseHeader:
    """404 header: status and Server only."""
    return ResponseBuilder(server_name).status(HTTPStatus.NOT_FOUND).build()


def internal_error(server_name: str) -> ResponseHeader:
    """500 header: status and Server only."""
    return ResponseBuilder(server_name).status(HTTPStatus.INTERNAL_SERVER_ERROR).build()
