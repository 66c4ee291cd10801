"""
=============================================================================
CONNECTION HANDLING
=============================================================================

Wraps one accepted client socket for exactly one request/response cycle.

=============================================================================
READING A REQUEST HEAD
=============================================================================

TCP is a byte stream: the request line may arrive split over several
recv() calls, or together with headers and a body. The head is complete
once the blank line (\\r\\n\\r\\n) has been seen:

    recv() → b"GET /tile_x0"                  buffer, keep reading
    recv() → b"_y0_z1.bmp HTTP/1.1\\r\\nHo"     buffer, keep reading
    recv() → b"st: a\\r\\n\\r\\n"                 head complete, stop

The buffer is bounded by max_request_size. A client that sends more
than that without finishing its head gets RequestTooLargeError, which
the server answers with 431. Any body after the head is never read; the
tile server does not use it.

=============================================================================
LIFECYCLE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
              │                                       ▲
              └──── timeout / too large / EOF ────────┘

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)

HEAD_TERMINATOR = b"\r\n\r\n"

# Total time close() spends reading what the client still sends.
CLOSE_DRAIN_TIMEOUT = 0.5


class RequestTooLargeError(ValueError):
    """The request head grew past max_request_size before it ended."""


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        state: Current lifecycle state.
        created_at: Time the connection was accepted.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 4096
    timeout: Optional[float] = 30.0
    max_request_size: int = 8192

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read the request head, up to and including the blank line.

        Returns:
            The head bytes, or None if the client closed the connection
            before sending a complete head.

        Raises:
            TimeoutError: The client stopped sending before the head ended.
            RequestTooLargeError: The head exceeded max_request_size.
        """
        self.state = ConnectionState.READING

        try:
            while HEAD_TERMINATOR not in self._buffer:
                if len(self._buffer) > self.max_request_size:
                    raise RequestTooLargeError(
                        f"Request head exceeds {self.max_request_size} bytes"
                    )

                chunk = self._recv()
                if not chunk:
                    return None

                self._buffer += chunk
        except socket.timeout:
            raise TimeoutError("Request read timeout")

        head_end = self._buffer.find(HEAD_TERMINATOR) + len(HEAD_TERMINATOR)
        if head_end > self.max_request_size:
            raise RequestTooLargeError(
                f"Request head of {head_end} bytes exceeds {self.max_request_size}"
            )

        self.state = ConnectionState.PROCESSING
        return self._buffer[:head_end]

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send a complete response with sendall().

        Returns:
            True if sent, False if the client had already gone away.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except (ConnectionResetError, BrokenPipeError, OSError) as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection: send FIN, drain what the client still sends,
        then release the socket.

        An unread request body is drained first, for at most
        CLOSE_DRAIN_TIMEOUT seconds in total, so the peer sees FIN
        rather than RST while the response is still in flight.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        deadline = time.monotonic() + CLOSE_DRAIN_TIMEOUT
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(self.buffer_size):
                    break
        except (socket.timeout, OSError):
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.1f}ms")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
