"""Request validation for desktop source listing.

Turns the caller's loosely typed options into a ``CaptureRequest``.
Unrecognized type strings are ignored; the request is only rejected when no
known source type remains.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from capturepicker.core.models import (
    DEFAULT_THUMBNAIL_SIZE,
    CaptureRequest,
    Resolution,
    SourceType,
)

logger = logging.getLogger(__name__)

INVALID_OPTIONS_MESSAGE = "Invalid options."


class InvalidConfigurationError(ValueError):
    """Raised when a request names neither screen nor window capture."""

    def __init__(self, message: str = INVALID_OPTIONS_MESSAGE):
        super().__init__(message)


def parse_source_types(value: Any) -> frozenset[SourceType]:
    """Collect the recognized source types from a list of strings.

    Args:
        value: The caller's ``types`` field

    Returns:
        Set of recognized types (empty if the field is absent or malformed)
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return frozenset()

    types = set()
    for entry in value:
        if entry == SourceType.SCREEN.value:
            types.add(SourceType.SCREEN)
        elif entry == SourceType.WINDOW.value:
            types.add(SourceType.WINDOW)
        else:
            logger.debug(f"Ignoring unrecognized source type: {entry!r}")
    return frozenset(types)


def _positive_int(value: Any) -> Optional[int]:
    # bool is an int subclass but never a dimension
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None


def parse_thumbnail_size(value: Any) -> Optional[Resolution]:
    """Parse a caller-supplied thumbnail size.

    Accepts a ``Resolution``, a ``{"width": w, "height": h}`` mapping or a
    ``(width, height)`` pair.

    Returns:
        The parsed size, or None if it is not two positive integers
    """
    if isinstance(value, Resolution):
        width, height = value.width, value.height
    elif isinstance(value, Mapping):
        width, height = value.get("width"), value.get("height")
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
        width, height = value
    else:
        return None

    width, height = _positive_int(width), _positive_int(height)
    if width is None or height is None:
        return None
    return Resolution(width, height)


def validate_request(
    options: Optional[Mapping[str, Any]],
    default_thumbnail_size: Resolution = DEFAULT_THUMBNAIL_SIZE,
) -> CaptureRequest:
    """Validate capture options.

    Args:
        options: Caller options with ``types`` and optional ``thumbnailSize``
        default_thumbnail_size: Size used when ``thumbnailSize`` is absent or malformed

    Returns:
        Validated CaptureRequest

    Raises:
        InvalidConfigurationError: If neither "screen" nor "window" was requested
    """
    if not isinstance(options, Mapping):
        logger.warning(f"Capture options must be a mapping, got {type(options).__name__}")
        raise InvalidConfigurationError()

    types = parse_source_types(options.get("types"))
    if not types:
        logger.warning(f"No recognized source types in request: {options.get('types')!r}")
        raise InvalidConfigurationError()

    thumbnail_size = default_thumbnail_size
    if "thumbnailSize" in options:
        parsed = parse_thumbnail_size(options["thumbnailSize"])
        if parsed is None:
            logger.warning(
                f"Ignoring invalid thumbnailSize {options['thumbnailSize']!r}, "
                f"using {default_thumbnail_size}"
            )
        else:
            thumbnail_size = parsed

    request = CaptureRequest(types=types, thumbnail_size=thumbnail_size)
    logger.debug(
        f"Validated request: types={sorted(t.value for t in types)}, thumbnail={thumbnail_size}"
    )
    return request
