"""
=============================================================================
VIEWER PAGE
=============================================================================

The HTML document served for every path that is not a tile request.

The page itself does nothing but load a script; that script implements
pan and zoom in the browser and fetches tiles from this server by
building paths such as /tile_x-0.75_y0.1_z16.bmp.

    Browser                          almondbread
    ───────                          ───────────
    GET /            ───────────►    viewer page (this module)
    load tiles.js    ───────────►    (external host)
    GET /tile_….bmp  ───────────►    rendered tile
    GET /tile_….bmp  ───────────►    rendered tile
    ...

Built-in page:

    <!DOCTYPE html>
    <script src="{viewer_script_url}"></script>

Setting TileConfig.viewer_file replaces it with the contents of that file.
The file is read once at startup.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


VIEWER_TEMPLATE = '<!DOCTYPE html>\n<script src="{script_url}"></script>\n'


class ViewerPage:
    """
    Holds the viewer document and serves it.

    Example:
        viewer = ViewerPage(script_url="https://example.org/tiles.js")
        viewer.body  # b'<!DOCTYPE html>\\n<script src=...'
    """

    def __init__(self, script_url: str, html_file: Optional[str] = None):
        """
        Args:
            script_url: Script loaded by the built-in page.
            html_file: Optional HTML file served instead of the built-in page.

        Raises:
            ValueError: If html_file is given but is not a readable file.
        """
        self.script_url = script_url
        self.html_file = html_file

        if html_file is not None:
            path = Path(html_file)
            if not path.is_file():
                raise ValueError(f"Viewer file does not exist: {html_file}")
            self._body = path.read_bytes()
            logger.info(f"Serving viewer page from {path}")
        else:
            self._body = VIEWER_TEMPLATE.format(script_url=script_url).encode("utf-8")

    @property
    def body(self) -> bytes:
        return self._body


def viewer_page(tile_config) -> ViewerPage:
    """Build the viewer page described by a TileConfig."""
    return ViewerPage(
        script_url=tile_config.viewer_script_url,
        html_file=tile_config.viewer_file,
    )
