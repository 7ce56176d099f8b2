"""
=============================================================================
HTTP/1.0 PROTOCOL PIECES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   request.py       bytes on the socket  ──►  Request                │
    │   response.py      outcome              ──►  ResponseHeader         │
    │   status_codes.py  200 / 404 / 500 and their literal status lines   │
    │   mime_types.py    file extension       ──►  Content-type           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

None of these touch the filesystem; the handlers do that.

=============================================================================
"""

from .request import (
    Request,
    RequestMethod,
    RequestParser,
    tokenize_request_line,
    parse_content_length,
)
from .response import (
    ResponseHeader,
    ResponseBuilder,
    format_http_date,
    file_found,
    form_echo,
    not_found,
    internal_error,
)
from .status_codes import HTTPStatus
from .mime_types import get_content_type

__all__ = [
    # Request
    "Request",
    "RequestMethod",
    "RequestParser",
    "tokenize_request_line",
    "parse_content_length",

    # Response
    "ResponseHeader",
    "ResponseBuilder",
    "format_http_date",
    "file_found",
    "form_echo",
    "not_found",
    "internal_error",

    # Status codes
    "HTTPStatus",

    # MIME types
    "get_content_type",
]
