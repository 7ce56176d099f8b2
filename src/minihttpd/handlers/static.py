"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves files from the document root for GET and HEAD requests.

=============================================================================
PATH RESOLUTION
=============================================================================

    Request line                    Filesystem path
    ─────────────────────────────   ───────────────────────────────
    GET / HTTP/1.0                  base_path + "/index.htm"
    GET /css/site.css HTTP/1.0      base_path + "/css/site.css"
    GET /a%20b.htm HTTP/1.0         base_path + "/a%20b.htm"   (no decoding)
    GET /x?v=1 HTTP/1.0             base_path + "/x?v=1"       (no stripping)

The target is appended to base_path as-is. There is no normalization and
no check that the result stays inside base_path: "/../secret" is served
if it exists. Only regular files are served; a directory is a 404.

=============================================================================
GET VS HEAD
=============================================================================

    ┌──────────────┬──────────────────────────────┬──────────────────────┐
    │              │  file exists                 │  file missing        │
    ├──────────────┼──────────────────────────────┼──────────────────────┤
    │  GET         │  200 header + file bytes     │  404 header +        │
    │              │                              │  404.htm bytes       │
    ├──────────────┼──────────────────────────────┼──────────────────────┤
    │  HEAD        │  200 header only             │  404 header +        │
    │              │                              │  404.htm bytes       │
    └──────────────┴──────────────────────────────┴──────────────────────┘

HEAD on a missing file still sends the 404 page. Clients of this server
have always received it, so it stays.

=============================================================================
STREAMING
=============================================================================

Files are copied to the socket in fixed 256-byte chunks, never loaded
whole. Each connection opens its own file handle and nothing is cached.

=============================================================================
"""

import os
import logging
from stat import S_ISREG
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from ..config import ServerConfig
from ..core.connection import Connection
from ..errors import MissingErrorPageError
from ..http.request import Request
from ..http.response import ResponseHeader, file_found, not_found
from ..http.mime_types import get_content_type


logger = logging.getLogger(__name__)


DEFAULT_CHUNK_SIZE = 256


@dataclass(frozen=True)
class StaticFile:
    """A regular file found under the document root."""
    path: str
    size: int
    modified: datetime

    @property
    def content_type(self) -> str:
        return get_content_type(self.path)


# =============================================================================
# FILE ACCESS
# =============================================================================

def resolve_file(path: str) -> Optional[StaticFile]:
    """
    Look up a regular file.

    Returns:
        The file's size and modification time, or None when there is no
        regular file at `path`.
    """
    try:
        info = os.stat(path)
    except (OSError, ValueError):
        # Missing, unreadable parent, name too long, embedded NUL
        return None

    if not S_ISREG(info.st_mode):
        return None

    return StaticFile(
        path=path,
        size=info.st_size,
        modified=datetime.fromtimestamp(info.st_mtime, timezone.utc),
    )


def stream_file(conn: Connection, path: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """
    Copy a file to the connection in `chunk_size` pieces until EOF.

    Args:
        conn: Destination connection.
        path: File to send.
        chunk_size: Bytes per write.

    Returns:
        Number of bytes written.

    Raises:
        OSError: The file could not be opened or read.
        WriteError: The connection failed mid-stream.
    """
    sent = 0
    with open(path, "rb") as src:
        while True:
            chunk = src.read(chunk_size)
            if not chunk:
                break
            conn.write(chunk)
            sent += len(chunk)
    return sent


def stream_page(conn: Connection, path: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """
    Stream an error page (404.htm, 500.htm).

    Raises:
        MissingErrorPageError: The page does not exist.
    """
    try:
        return stream_file(conn, path, chunk_size)
    except FileNotFoundError as e:
        raise MissingErrorPageError(path) from e


# =============================================================================
# HANDLER
# =============================================================================

class StaticFileHandler:
    """
    GET and HEAD handler.

    Both methods resolve the path the same way and build the same header;
    they differ only in whether a found file's bytes are sent.

    Usage:
        static = StaticFileHandler(config, log)
        static.handle_get(conn, request)
    """

    def __init__(self, config: ServerConfig, log: Callable[..., None]):
        """
        Args:
            config: Server configuration (document root, pages, chunk size).
            log: Access log sink, called as log(*messages).
        """
        self.config = config
        self.log = log

    def full_path(self, target: str) -> str:
        """Map a request target to a filesystem path."""
        if target == "/":
            return self.config.index_path
        return self.config.resolve(target)

    def handle_get(self, conn: Connection, request: Request) -> ResponseHeader:
        return self._respond(conn, request, send_body=True)

    def handle_head(self, conn: Connection, request: Request) -> ResponseHeader:
        return self._respond(conn, request, send_body=False)

    def _respond(self, conn: Connection, request: Request, send_body: bool) -> ResponseHeader:
        """
        Write the response for one GET/HEAD request, then close.

        The header is logged together with the raw request after the
        connection is closed.
        """
        path = self.full_path(request.target_path)
        found = resolve_file(path)

        if found is not None:
            header = file_found(
                self.config.server_name,
                last_modified=found.modified,
                content_type=found.content_type,
                content_length=found.size,
            )
            conn.write(header.to_bytes())
            if send_body:
                stream_file(conn, found.path, self.config.chunk_size)
        else:
            logger.debug(f"[{conn.id}] Not found: {path}")
            header = not_found(self.config.server_name)
            conn.write(header.to_bytes())
            # Sent for HEAD as well
            stream_page(conn, self.config.not_found_path, self.config.chunk_size)

        conn.close()
        self.log("===REQUEST===", request.raw_text, "===RESPONSE===", header.to_text())
        return header
