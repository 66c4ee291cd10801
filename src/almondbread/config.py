"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Two dataclasses hold every tunable value:

    ServerConfig    network, threading, logging
      └── tile      TileConfig: render constants and routing rules

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── almondbread --port 3000 --tile-size 512x512                │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── ALMOND_PORT=3000 ALMOND_MAX_STEPS=512 almondbread          │
    │                                                                     │
    │   3. Default values (in these dataclasses)                          │
    └─────────────────────────────────────────────────────────────────────┘

Both classes validate eagerly: TileServer calls validate() in its
constructor, so a bad value stops the process before the socket is bound.

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


DEFAULT_VIEWER_SCRIPT_URL = "https://almondbread.cse.unsw.edu.au/tiles.js"


@dataclass
class TileConfig:
    """
    Process-wide constants for rendering and routing tiles.

    Changing any of these changes every tile the server produces, so they
    are fixed at startup rather than taken from requests.
    """

    # ─────────────────────────────────────────────────────────────────────
    # RENDERING
    # ─────────────────────────────────────────────────────────────────────

    width: int = 256
    """Tile width in pixels."""

    height: int = 256
    """Tile height in pixels."""

    base_span: float = 4.0
    """
    Width and height of the plane region visible at zoom 1.
    4.0 covers [-2, 2] on both axes around the tile centre.
    """

    max_steps: int = 256
    """Iteration cap. Pixels that reach it are treated as in the set."""

    escape_radius_sq: float = 4.0
    """Squared modulus beyond which an orbit counts as escaped."""

    # ─────────────────────────────────────────────────────────────────────
    # ROUTING
    # ─────────────────────────────────────────────────────────────────────

    image_extensions: Tuple[str, ...] = ("bmp",)
    """
    Path extensions (text after the final ".") that select a tile render.
    Matched exactly. Every other path is answered with the viewer page.
    """

    max_path_length: int = 1000
    """Longest path accepted; longer ones get 414 URI Too Long."""

    # ─────────────────────────────────────────────────────────────────────
    # VIEWER PAGE
    # ─────────────────────────────────────────────────────────────────────

    viewer_script_url: str = DEFAULT_VIEWER_SCRIPT_URL
    """Script the built-in viewer page loads to drive pan and zoom."""

    viewer_file: Optional[str] = None
    """HTML file served instead of the built-in viewer page."""

    @classmethod
    def from_env(cls) -> "TileConfig":
        """
        Read tile settings from the environment.

        ALMOND_TILE_WIDTH       Tile width (default: 256)
        ALMOND_TILE_HEIGHT      Tile height (default: 256)
        ALMOND_BASE_SPAN        Plane span at zoom 1 (default: 4.0)
        ALMOND_MAX_STEPS        Iteration cap (default: 256)
        ALMOND_ESCAPE_RADIUS_SQ Escape threshold (default: 4.0)
        ALMOND_VIEWER_FILE      Viewer HTML file (default: built-in page)
        """
        return cls(
            width=int(os.getenv("ALMOND_TILE_WIDTH", "256")),
            height=int(os.getenv("ALMOND_TILE_HEIGHT", "256")),
            base_span=float(os.getenv("ALMOND_BASE_SPAN", "4.0")),
            max_steps=int(os.getenv("ALMOND_MAX_STEPS", "256")),
            escape_radius_sq=float(os.getenv("ALMOND_ESCAPE_RADIUS_SQ", "4.0")),
            viewer_file=os.getenv("ALMOND_VIEWER_FILE") or None,
        )

    def validate(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(
                f"Tile size must be at least 1x1, got {self.width}x{self.height}"
            )

        if not self.base_span > 0:
            raise ValueError(f"base_span must be > 0, got {self.base_span}")

        if self.max_steps < 1:
            raise ValueError(f"max_steps must be >= 1, got {self.max_steps}")

        if not self.escape_radius_sq > 0:
            raise ValueError(f"escape_radius_sq must be > 0, got {self.escape_radius_sq}")

        if not self.image_extensions:
            raise ValueError("image_extensions must not be empty")

        if self.max_path_length < 1:
            raise ValueError("max_path_length must be >= 1")


@dataclass
class ServerConfig:
    """
    Configuration for the tile server.

    Development:
        ServerConfig(log_level="DEBUG", tile=TileConfig(max_steps=64))

    Production:
        ServerConfig(host="0.0.0.0", max_workers=32, log_format="json")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces (production)
    """

    port: int = 8080
    """The port number to listen on."""

    backlog: int = 128
    """Maximum number of queued connections."""

    buffer_size: int = 4096
    """Bytes requested from the socket per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Socket timeout in seconds while reading a request.
    None = blocking (a silent client holds a worker forever).
    """

    max_request_size: int = 8192
    """
    Largest request head, in bytes, read before answering 431.
    Anything after the blank line that ends the head is never read.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """Worker threads started with the server."""

    max_workers: int = 16
    """Upper bound on worker threads; tiles render in parallel up to this."""

    queue_size: int = 256
    """Accepted connections waiting for a worker before 503 is returned."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "almondbread"
    """Value of the Server response header."""

    tile: TileConfig = field(default_factory=TileConfig)
    """Render constants and routing rules."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        ALMOND_HOST       Server host (default: 127.0.0.1)
        ALMOND_PORT       Server port (default: 8080)
        ALMOND_WORKERS    Max worker threads (default: 16)
        ALMOND_TIMEOUT    Request read timeout in seconds (default: 30)
        ALMOND_LOG_LEVEL  Logging level (default: INFO)

        plus the ALMOND_TILE_* family read by TileConfig.from_env().

        =====================================================================
        """
        max_workers = int(os.getenv("ALMOND_WORKERS", "16"))
        return cls(
            host=os.getenv("ALMOND_HOST", "127.0.0.1"),
            port=int(os.getenv("ALMOND_PORT", "8080")),
            max_workers=max_workers,
            min_workers=min(4, max_workers),
            timeout=float(os.getenv("ALMOND_TIMEOUT", "30")),
            log_level=os.getenv("ALMOND_LOG_LEVEL", "INFO"),
            tile=TileConfig.from_env(),
        )

    def validate(self) -> None:
        """
        Validate configuration values, including the nested tile config.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 64:
            raise ValueError("buffer_size must be >= 64")

        if self.max_request_size < 64:
            raise ValueError("max_request_size must be >= 64")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")

        self.tile.validate()
