"""
=============================================================================
minihttpd
=============================================================================

A small HTTP/1.0 server for a directory of static files.

    GET  /path   file from the document root (200), or 404.htm (404)
    HEAD /path   the same headers, without the file body
    POST /path   URL-encoded form fields echoed back as text
    (failure)    500.htm plus the exception text (500)

One thread per connection, one request per connection.

=============================================================================
QUICK START
=============================================================================

    $ python -m minihttpd 8080 /var/www

    from minihttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=8080, base_path="/var/www"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, create_app
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
