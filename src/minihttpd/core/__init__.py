"""
=============================================================================
NETWORKING CORE
=============================================================================

    socket_server.py   listening socket, accept loop, thread per connection
    connection.py      one client socket: line reads, exact reads, writes

Nothing in here knows about HTTP. The HTTP server hands SocketServer a
callback and receives one Connection per client in a fresh thread.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Accept loop, one thread per connection
    "Connection",       # Client socket wrapper
    "ConnectionState",  # Lifecycle states of a connection
]
