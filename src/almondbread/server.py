"""
=============================================================================
TILE SERVER
=============================================================================

Wires the networking core, the HTTP layer and the tile router together.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   Listener.accept()                                                 │
    │        │                                                            │
    │        ▼                                                            │
    │   _queue_connection(conn) ── pool saturated ──► 503                 │
    │        │ WorkerPool.offer                                           │
    │        ▼                                                            │
    │   _process_connection(conn)            (worker thread)              │
    │        │                                                            │
    │        ├── read head ─────────── timeout ──► 408                    │
    │        │                 └────── too big ──► 431                    │
    │        ├── parse ─────────────── HTTPParseError ──► 400/405/505     │
    │        ├── LoggingMiddleware                                        │
    │        │     └── RequestRouter.handle                               │
    │        │           ├── Viewer      ──► 200 text/html                │
    │        │           ├── Image       ──► 200 image/bmp                │
    │        │           ├── ClientError ──► 400 / 414 text/plain         │
    │        │           └── EncodingError / other ──► 500                │
    │        ├── send response                                            │
    │        └── close                                                    │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

One request per connection. The response is serialized in full before
the first byte is written, so a failed render never leaves a partial
bitmap on the wire.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import Connection, Listener, RequestTooLargeError, WorkerPool
from .fractal.errors import EncodingError
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    error_response,
    internal_error,
)
from .http.router import Handler, RequestRouter
from .middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SHUTDOWN_DRAIN_TIMEOUT = 30.0


class TileServer:
    """
    Multi-threaded HTTP server for Mandelbrot tiles.

    Usage:
        server = TileServer(ServerConfig(port=8080))
        server.run()  # blocks until SIGINT/SIGTERM or stop()

    handle() runs middleware and routing on an already parsed request,
    no sockets involved:

        response = server.handle(HTTPRequest(method="GET", path="/tile.bmp"))
    """

    def __init__(self, config: Optional[ServerConfig] = None, access_log: bool = True):
        """
        Args:
            config: Server configuration; defaults if omitted.
            access_log: Install LoggingMiddleware as the outermost middleware.

        Raises:
            ValueError: If the configuration is invalid or the configured
                viewer file does not exist.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._listener = Listener(self.config)
        self._pool = WorkerPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser()
        self._router = RequestRouter(self.config.tile)

        self._middleware = MiddlewarePipeline()
        if access_log:
            self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))
        self._chain: Optional[Handler] = None

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "TileServer":
        """Add middleware inside any already added; returns self."""
        self._middleware.add(middleware)
        self._chain = None
        return self

    @property
    def router(self) -> RequestRouter:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port); the real port once listening."""
        return self._listener.address

    @property
    def is_running(self) -> bool:
        return self._listener.is_listening

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections; False on timeout."""
        return self._listener.ready.wait(timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Serve until stopped (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: If the address cannot be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._configure_logging()

        tile = self.config.tile
        logger.info(
            f"almondbread on {self.config.host}:{self.config.port}: "
            f"{tile.width}x{tile.height} tiles, max_steps={tile.max_steps}, "
            f"{self.config.min_workers}-{self.config.max_workers} workers"
        )

        self._pool.start()
        try:
            self._listener.serve(self._queue_connection)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self._pool.shutdown(drain=True, timeout=SHUTDOWN_DRAIN_TIMEOUT)
            logger.info("Server stopped")

    def stop(self):
        """Ask a running server to stop; run() returns shortly after."""
        self._listener.stop()

    def _configure_logging(self):
        level = logging.getLevelName(self.config.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        logging.getLogger("almondbread").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run a parsed request through middleware and the router.

        Never raises: encoder failures and unexpected handler errors
        become 500 responses. HEAD gets GET's headers and no body.
        """
        if self._chain is None:
            self._chain = self._middleware.wrap(self._router.handle)

        try:
            response = self._chain(request)
        except EncodingError as e:
            logger.exception(f"Failed to encode tile for {request.path}: {e}")
            return internal_error("Tile encoding failed")
        except Exception as e:
            logger.exception(f"Unhandled {type(e).__name__} for {request.path}: {e}")
            return internal_error()

        if request.method == "HEAD":
            response.set_header("Content-Length", str(len(response.body)))
            response.body = b""

        return response

    def _queue_connection(self, conn: Connection):
        """Hand a connection to the pool; answer 503 when it is saturated."""
        try:
            queued = self._pool.offer(self._process_connection, conn)
        except RuntimeError:
            queued = False

        if not queued:
            logger.warning(f"[{conn.id}] Worker pool saturated, answering 503")
            with conn:
                self._reply(conn, error_response(HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded"))

    def _process_connection(self, conn: Connection):
        """Read, parse, handle and answer one request (worker thread)."""
        with conn:
            response = self._respond_to(conn)
            if response is not None:
                self._reply(conn, response)

    def _respond_to(self, conn: Connection) -> Optional[HTTPResponse]:
        """Build the response for the one request on conn; None if the client left."""
        try:
            head = conn.read_request()
        except TimeoutError:
            return error_response(HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
        except RequestTooLargeError as e:
            logger.info(f"[{conn.id}] {e}")
            return error_response(HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE, "Request too large")

        if head is None:
            return None

        try:
            request = self._parser.parse(head, conn.address)
        except HTTPParseError as e:
            logger.info(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
            return error_response(e.status_code, str(e))

        return self.handle(request)

    def _reply(self, conn: Connection, response: HTTPResponse):
        conn.send_response(response.to_bytes(self.config.server_name))


def create_app(config: Optional[ServerConfig] = None) -> TileServer:
    """
    Create a tile server.

    Example:
        app = create_app(ServerConfig(port=3000, tile=TileConfig(max_steps=512)))
        app.run()
    """
    return TileServer(config)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Accept → pool → read → parse → middleware → router → send → close
# 2. Every failure maps to a status on the one connection it affects
# 3. Shutdown drains the pool before workers stop
# =============================================================================
