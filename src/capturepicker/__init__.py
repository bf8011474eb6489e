"""capturepicker - list capturable screens and windows with thumbnails."""

from capturepicker.core.version import __version__

__all__ = ["__version__"]
