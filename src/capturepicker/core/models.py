"""Core data models for the capturepicker package.

This module contains the value objects, records and enums shared by the
request validator, the source list controller and the result synthesizer.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Tuple

import numpy as np
from PySide6.QtGui import QImage

# ============================================================================
# Basic Value Objects
# ============================================================================


@dataclass(frozen=True)
class Resolution:
    """Bitmap size in pixels."""

    width: int
    height: int

    def __str__(self) -> str:
        """String representation."""
        return f"{self.width}x{self.height}"

    def to_tuple(self) -> Tuple[int, int]:
        """Convert to (width, height) tuple."""
        return (self.width, self.height)

    @classmethod
    def from_tuple(cls, resolution: Tuple[int, int]) -> Resolution:
        """Create from (width, height) tuple."""
        return cls(width=resolution[0], height=resolution[1])

    @property
    def aspect_ratio(self) -> float:
        """Calculate aspect ratio."""
        return self.width / self.height if self.height > 0 else 0.0

    @property
    def is_positive(self) -> bool:
        """Whether both dimensions are greater than zero."""
        return self.width > 0 and self.height > 0


DEFAULT_THUMBNAIL_SIZE = Resolution(150, 150)


# ============================================================================
# Basic Enums
# ============================================================================


class SourceType(Enum):
    """Kind of capturable desktop source."""

    SCREEN = "screen"
    WINDOW = "window"


class ControllerState(Enum):
    """State of a source list controller.

    IDLE -> ACTIVE -> COMPLETED, or ACTIVE -> ABANDONED when the session is
    torn down before the backend finished its refresh.
    """

    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


# ============================================================================
# Request and Session Models
# ============================================================================


@dataclass(frozen=True)
class CaptureRequest:
    """Validated capture configuration for one session."""

    types: FrozenSet[SourceType]
    thumbnail_size: Resolution = DEFAULT_THUMBNAIL_SIZE

    @property
    def wants_screens(self) -> bool:
        return SourceType.SCREEN in self.types

    @property
    def wants_windows(self) -> bool:
        return SourceType.WINDOW in self.types


@dataclass(frozen=True)
class Source:
    """One capturable target inside a session's source list.

    The position of a source is implicit: it is the index in the list.
    """

    id: str
    name: str
    thumbnail: np.ndarray = field(compare=False, repr=False)


# ============================================================================
# Result Models
# ============================================================================


@dataclass(frozen=True)
class SourceRecord:
    """Serializable record describing one source in a result."""

    name: str
    id: str
    thumbnail: QImage = field(compare=False, repr=False)

    @property
    def thumbnail_size(self) -> Resolution:
        return Resolution(self.thumbnail.width(), self.thumbnail.height())

    def thumbnail_data_url(self) -> str:
        """Get the thumbnail as a ``data:image/png;base64`` URL."""
        from capturepicker.core.imaging import qimage_to_png

        encoded = base64.b64encode(qimage_to_png(self.thumbnail)).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    def to_dict(self, include_thumbnail: bool = False) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary.

        Args:
            include_thumbnail: Embed the thumbnail as a PNG data URL

        Returns:
            Dictionary with name, id and thumbnail size (and data URL if requested)
        """
        data: dict[str, Any] = {
            "name": self.name,
            "id": self.id,
            "thumbnailSize": {
                "width": self.thumbnail.width(),
                "height": self.thumbnail.height(),
            },
        }
        if include_thumbnail:
            data["thumbnail"] = self.thumbnail_data_url()
        return data


@dataclass(frozen=True)
class CaptureResult:
    """Immutable snapshot delivered to the caller once per session.

    An empty ``error_message`` means success. Failed results never carry
    sources.
    """

    error_message: str = ""
    sources: Tuple[SourceRecord, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.error_message == ""

    @classmethod
    def failure(cls, error_message: str) -> CaptureResult:
        return cls(error_message=error_message, sources=())

    def to_dict(self, include_thumbnails: bool = False) -> dict[str, Any]:
        return {
            "errorMessage": self.error_message,
            "sources": [s.to_dict(include_thumbnail=include_thumbnails) for s in self.sources],
        }


# ============================================================================
# Settings Models
# ============================================================================


@dataclass
class PickerSettings:
    """Application settings.

    Attributes:
        default_thumbnail_size: Thumbnail size used when a request omits one
        update_period_ms: Delay between refreshes when an observer asks to continue
        skip_untitled_windows: Leave windows without a title out of enumeration
    """

    default_thumbnail_size: Resolution = DEFAULT_THUMBNAIL_SIZE
    update_period_ms: int = 1000
    skip_untitled_windows: bool = True
