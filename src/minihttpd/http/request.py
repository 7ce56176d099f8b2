"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads the request head off a connection and extracts the three things the
handlers need: the method, the target path and (for POST) the body length.

=============================================================================
WHAT GETS READ
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP/1.0 REQUEST                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    POST /form.htm HTTP/1.0\r\n           ← request line              │
    │    Host: localhost\r\n                                              │
    │    Content-Length: 7\r\n                  ← body size (POST only)    │
    │    \r\n                                   ← terminator               │
    │    a=1&b=2                                ← body, NOT read here      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Lines are read one at a time until a line that is exactly "\r\n". The
accumulated text, terminator included, is the request's raw text. The body
stays on the connection for the POST handler to read.

=============================================================================
REQUEST LINE TOKENIZING
=============================================================================

    GET /docs/a b.htm HTTP/1.0
    ─┬─ ─────┬──────  ───┬───
     │       │           │
   method  target     from the first " HTTP" on: dropped

- The method is the text before the first space: HEAD, POST or GET.
  Anything else is UNKNOWN and gets no handler.
- The target runs from after "<METHOD> " to the first " HTTP". It is used
  verbatim: no URL decoding, no query string stripping. Spaces survive.
- A line without " HTTP" after the method does not match any method.

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from ..errors import MalformedRequestError


TERMINATOR = b"\r\n"
CONTENT_LENGTH_PREFIX = "Content-Length: "
VERSION_MARKER = " HTTP"

# Request bytes are decoded the way the OS decodes file names, so an
# undecodable byte in the target still maps back to the same file.
REQUEST_ENCODING = "utf-8"
REQUEST_ERRORS = "surrogateescape"


class RequestMethod(Enum):
    """Methods the server dispatches on."""
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    UNKNOWN = "UNKNOWN"


# Tried in this order
_DISPATCHED_METHODS = (RequestMethod.HEAD, RequestMethod.POST, RequestMethod.GET)


class LineReader(Protocol):
    """Anything that hands out one line of bytes per call, b"" at EOF."""

    def readline(self) -> bytes: ...


@dataclass(frozen=True)
class Request:
    """
    A parsed request head.

    Attributes:
        method: Which handler to run.
        raw_text: Every line read, terminator included.
        target_path: Path as it appeared on the request line. Empty for
                     POST and UNKNOWN requests.
        content_length: Body size for POST (0 if absent or not a number),
                        None for every other method.
    """

    method: RequestMethod
    raw_text: str
    target_path: str = ""
    content_length: Optional[int] = None

    @property
    def request_line(self) -> str:
        return _first_line(self.raw_text)


class RequestParser:
    """
    Reads and parses request heads.

    Stateless; one instance is shared by all connection threads.

        parser = RequestParser()
        raw = parser.read_header_block(conn)
        request = parser.parse(raw)
    """

    def read_header_block(self, reader: LineReader) -> str:
        """
        Read lines until the blank CRLF line.

        Args:
            reader: The connection (or anything with readline()).

        Returns:
            All lines read, concatenated, terminator included.

        Raises:
            MalformedRequestError: The stream ended before the terminator.
        """
        lines = []
        while True:
            line = reader.readline()
            if not line:
                raise MalformedRequestError(_decode(b"".join(lines)))
            lines.append(line)
            if line == TERMINATOR:
                break
        return _decode(b"".join(lines))

    def parse(self, raw_text: str) -> Request:
        """
        Extract method, target path and Content-Length from a request head.

        Args:
            raw_text: Text returned by read_header_block().

        Returns:
            The Request. Never raises: an unrecognised request line yields
            RequestMethod.UNKNOWN.
        """
        method, target = tokenize_request_line(_first_line(raw_text))

        if method is RequestMethod.POST:
            return Request(
                method=method,
                raw_text=raw_text,
                content_length=parse_content_length(raw_text),
            )

        if method is RequestMethod.UNKNOWN:
            return Request(method=method, raw_text=raw_text)

        return Request(method=method, raw_text=raw_text, target_path=target)


def tokenize_request_line(line: str) -> tuple[RequestMethod, str]:
    """
    Split a request line into (method, target).

    Examples:
        >>> tokenize_request_line("GET /index.htm HTTP/1.0")
        (<RequestMethod.GET: 'GET'>, '/index.htm')

        >>> tokenize_request_line("DELETE /x HTTP/1.0")
        (<RequestMethod.UNKNOWN: 'UNKNOWN'>, '')
    """
    token, space, rest = line.partition(" ")
    if not space:
        return RequestMethod.UNKNOWN, ""

    end = rest.find(VERSION_MARKER)
    if end < 0:
        return RequestMethod.UNKNOWN, ""

    for method in _DISPATCHED_METHODS:
        if token == method.value:
            return method, rest[:end]

    return RequestMethod.UNKNOWN, ""


def parse_content_length(raw_text: str) -> int:
    """
    Value of the first 'Content-Length: ' header, as an integer.

    The header name is matched case-sensitively. Only the leading digits
    of the value count; no digits (or no header) means 0.
    """
    for line in raw_text.split("\n")[1:]:
        if not line.startswith(CONTENT_LENGTH_PREFIX):
            continue
        value = line[len(CONTENT_LENGTH_PREFIX):].strip()
        digits = ""
        for char in value:
            if char not in "0123456789":
                break
            digits += char
        return int(digits) if digits else 0
    return 0


def _first_line(raw_text: str) -> str:
    return raw_text.split("\n", 1)[0].rstrip("\r")


def _decode(data: bytes) -> str:
    return data.decode(REQUEST_ENCODING, REQUEST_ERRORS)
