"""
=============================================================================
CORE MODULE
=============================================================================

Networking underneath the HTTP layer:

    socket_server.py   listening socket, accept loop, signal handling
    connection.py      per-client buffered reads, byte sink for responses
    thread_pool.py     bounded worker pool the connections run on

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
