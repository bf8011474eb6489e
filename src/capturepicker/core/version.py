"""Version information for capturepicker."""

from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    """Get version from installed package metadata.

    Returns:
        Version string (e.g., "0.1.0") or "unknown" if not installed
    """
    try:
        return version("capturepicker")
    except PackageNotFoundError:
        return "unknown"


__version__ = get_version()
