"""
Request handlers that produce fixed content.

    ViewerPage / viewer_page()   the HTML page that drives the tile viewer
"""

from .viewer import ViewerPage, viewer_page

__all__ = [
    "ViewerPage",
    "viewer_page",
]
