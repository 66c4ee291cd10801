"""
=============================================================================
COMMAND LINE INTERFACE
=============================================================================

    python -m almondbread [options]
    almondbread [options]

Settings are layered: defaults, then ALMOND_* environment variables,
then the flags given here.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional, Tuple

from . import __version__
from .config import ServerConfig
from .server import TileServer


def parse_tile_size(value: str) -> Tuple[int, int]:
    """
    Parse "WIDTHxHEIGHT" (or a single number for a square tile).

    Examples:
        >>> parse_tile_size("512x256")
        (512, 256)
        >>> parse_tile_size("128")
        (128, 128)
    """
    parts = value.lower().split("x")
    try:
        if len(parts) == 1:
            width = height = int(parts[0])
        elif len(parts) == 2:
            width, height = int(parts[0]), int(parts[1])
        else:
            raise ValueError(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}")

    if width < 1 or height < 1:
        raise argparse.ArgumentTypeError(f"Tile size must be positive, got {value!r}")

    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="almondbread",
        description="Serve Mandelbrot tiles as bitmaps, plus a browser viewer page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  almondbread                              # http://127.0.0.1:8080/
  almondbread --host 0.0.0.0 --port 8000   # Listen on all interfaces
  almondbread --tile-size 512x512          # Bigger tiles
  almondbread --max-steps 1024             # More detail near the boundary
  almondbread --viewer-file ./viewer.html  # Serve your own viewer page

Tile paths look like /tile_x-0.5_y0.25_z8.bmp (all fields optional).
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum worker threads, i.e. tiles rendered at once (default: 16)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # RENDERING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--tile-size",
        type=parse_tile_size,
        default=None,
        metavar="WxH",
        help="Tile dimensions in pixels (default: 256x256)"
    )

    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Iteration cap per pixel (default: 256)"
    )

    parser.add_argument(
        "--viewer-file",
        default=None,
        help="HTML file to serve instead of the built-in viewer page"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"almondbread {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Overlay parsed CLI flags on the environment-derived configuration."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.max_workers = args.workers
        config.min_workers = min(config.min_workers, args.workers)
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    if args.tile_size is not None:
        config.tile.width, config.tile.height = args.tile_size
    if args.max_steps is not None:
        config.tile.max_steps = args.max_steps
    if args.viewer_file is not None:
        config.tile.viewer_file = args.viewer_file

    return config


def main(argv: Optional[List[str]] = None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        server = TileServer(config)
    except ValueError as e:
        parser.error(str(e))

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
