"""
=============================================================================
ALMONDBREAD - Mandelbrot Tile Server
=============================================================================

Serves escape-time renderings of the Mandelbrot set as 24-bit bitmap
tiles, plus a small HTML page that loads a browser-side viewer which
pans and zooms by requesting tiles.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   core/          Listener → WorkerPool → Connection                 │
    │      │                                                              │
    │      ▼                                                              │
    │   http/          RequestParser → middleware → RequestRouter         │
    │      │                                       │            │         │
    │      │                               "*.bmp" ▼            ▼ other   │
    │   fractal/       parse_viewport → rasterize → encode   handlers/    │
    │                  (viewport)      (raster,     (bitmap,  ViewerPage  │
    │                                   escape)     palette)              │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    $ almondbread --port 8080
    $ curl -o tile.bmp http://127.0.0.1:8080/tile_x-0.5_y0_z1.bmp

    # Or from Python:
    from almondbread import TileServer, ServerConfig

    TileServer(ServerConfig(port=8080)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig, TileConfig
from .server import TileServer, create_app

__all__ = ["TileServer", "ServerConfig", "TileConfig", "create_app", "__version__"]
