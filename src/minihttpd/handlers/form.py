"""
POST handler: echoes URL-encoded form fields back as text.

    POST /anything HTTP/1.0
    Content-Length: 7

    a=1&b=2

is answered with

    HTTP/1.0 200/OK
    Date: ...
    Server: My Server

    Post parameters:
    a: 1<br>
    b: 2<br>

Fields come out in the order they first appear. A field sent several
times is listed once, with its first value. The request path is ignored.
"""

import logging
from typing import Callable, Dict, List
from urllib.parse import parse_qs

from ..config import ServerConfig
from ..core.connection import Connection
from ..http.request import Request, REQUEST_ENCODING, REQUEST_ERRORS
from ..http.response import ResponseHeader, form_echo


logger = logging.getLogger(__name__)


def parse_form(body: bytes) -> Dict[str, List[str]]:
    """
    Decode an application/x-www-form-urlencoded body.

    '+' becomes a space and %XX escapes are decoded. Empty values are
    kept, so "a=&b" yields {"a": [""], "b": [""]}.
    """
    text = body.decode(REQUEST_ENCODING, REQUEST_ERRORS)
    return parse_qs(text, keep_blank_values=True, errors="replace")


def render_form(fields: Dict[str, List[str]]) -> str:
    lines = ["Post parameters:"]
    for name, values in fields.items():
        lines.append(f"{name}: {values[0]}<br>")
    return "\n".join(lines) + "\n"


class FormHandler:
    """Reads the POST body, writes the field listing, closes."""

    def __init__(self, config: ServerConfig, log: Callable[..., None]):
        self.config = config
        self.log = log

    def handle(self, conn: Connection, request: Request) -> ResponseHeader:
        # Whole body first; nothing is written until it has arrived
        body = conn.read_exact(request.content_length or 0)
        fields = parse_form(body)
        logger.debug(f"[{conn.id}] Form with {len(fields)} field(s)")

        header = form_echo(self.config.server_name)
        conn.write(header.to_bytes())
        conn.write_text(render_form(fields))

        conn.close()
        self.log("===RESPONSE===", header.to_text())
        return header
