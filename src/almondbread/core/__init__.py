"""
=============================================================================
NETWORKING CORE
=============================================================================

    Listener       listening socket, accept loop, signal handling
         │
         ▼ Connection
    WorkerPool     one job per accepted connection
         │
         ▼
    TileServer._process_connection  (almondbread.server)

Each connection carries exactly one request; nothing is shared between
requests except the listening socket and the pool's queue.

=============================================================================
"""

from .connection import Connection, ConnectionState, RequestTooLargeError
from .listener import Listener
from .workers import WorkerPool

__all__ = [
    "Connection",
    "ConnectionState",
    "Listener",
    "RequestTooLargeError",
    "WorkerPool",
]
