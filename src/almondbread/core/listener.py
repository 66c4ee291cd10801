"""
=============================================================================
LISTENER
=============================================================================

Owns the listening socket and the accept loop. Every accepted socket is
wrapped in a Connection and handed to a callback on the accept thread;
the callback queues it for a worker and returns.

    serve(on_connection)
        │
        ├── bind + listen ────────────────► ready.set()
        │
        └── loop ── accept() ── Connection ──► on_connection(conn)
               ▲         │
               │         └── timeout every POLL_INTERVAL
               └──────────── until stop()

While serve() runs on the main thread, SIGINT and SIGTERM call stop();
the previous handlers come back when serve() returns.

=============================================================================
"""

import contextlib
import logging
import signal
import socket
import threading
from typing import Callable, Iterator, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


POLL_INTERVAL = 0.5

ConnectionCallback = Callable[[Connection], None]


class Listener:
    """
    Accepts TCP connections for the tile server.

    Example:
        listener = Listener(config)
        listener.serve(queue_connection)   # returns after stop()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Supplies host, port, backlog and per-connection limits.
        """
        self.config = config
        self.ready = threading.Event()
        self._sock: Optional[socket.socket] = None
        self._stopping = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        """
        (host, port) actually bound while listening, else the configured pair.

        With port 0 the OS picks the port, so only this reports it.
        """
        if self._sock is None:
            return (self.config.host, self.config.port)
        host, port = self._sock.getsockname()[:2]
        return (host, port)

    @property
    def is_listening(self) -> bool:
        return self.ready.is_set()

    def serve(self, on_connection: ConnectionCallback):
        """
        Listen and accept until stop() is called.

        Args:
            on_connection: Receives every accepted Connection. Runs on the
                accept thread, so it must not block for long.

        Raises:
            OSError: The address could not be bound.
        """
        self._stopping.clear()
        self._sock = self._listen()

        try:
            with self._stop_on_signals():
                host, port = self.address
                logger.info(f"Listening on {host}:{port}")
                self.ready.set()
                self._accept_until_stopped(on_connection)
        finally:
            self.ready.clear()
            self._sock.close()
            self._sock = None
            logger.info("Listener closed")

    def stop(self):
        """Make serve() return within POLL_INTERVAL. Safe to call repeatedly."""
        if not self._stopping.is_set():
            logger.info("Stopping listener...")
            self._stopping.set()

    # ─────────────────────────────────────────────────────────────────────
    # INTERNALS
    # ─────────────────────────────────────────────────────────────────────

    def _listen(self) -> socket.socket:
        host, port = self.config.host, self.config.port

        try:
            sock = socket.create_server((host, port), backlog=self.config.backlog)
        except OSError as e:
            logger.error(f"Cannot listen on {host}:{port}: {e}")
            raise

        sock.settimeout(POLL_INTERVAL)
        return sock

    def _accept_until_stopped(self, on_connection: ConnectionCallback):
        while not self._stopping.is_set():
            try:
                client, peer = self._sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._stopping.is_set():
                    logger.error(f"accept() failed: {e}")
                return

            client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            logger.debug(f"Connection from {peer[0]}:{peer[1]}")

            on_connection(Connection(
                socket=client,
                address=peer,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            ))

    @contextlib.contextmanager
    def _stop_on_signals(self) -> Iterator[None]:
        """Route SIGINT and SIGTERM to stop(). Only the main thread may do this."""
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.stop()

        previous = {
            sig: signal.signal(sig, on_signal)
            for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
