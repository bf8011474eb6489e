"""Desktop source listing.

This module provides the request validator, the source list controller, the
backend-driven media list and the ``DesktopCapturer`` entry point.
"""

from capturepicker.core.capture.backend import (
    CaptureOptions,
    CapturerInterface,
    ScreenCapturer,
    SourceDescriptor,
    WindowCapturer,
    create_screen_capturer,
    create_window_capturer,
)
from capturepicker.core.capture.capturer import DesktopCapturer
from capturepicker.core.capture.controller import SourceListController
from capturepicker.core.capture.emitter import ResultEmitter
from capturepicker.core.capture.events import (
    RefreshFinished,
    SourceAdded,
    SourceListEvent,
    SourceMoved,
    SourceNameChanged,
    SourceRemoved,
    SourceThumbnailChanged,
    apply_event,
)
from capturepicker.core.capture.media_list import DesktopMediaList, EventChannel
from capturepicker.core.capture.source_list import SourceListSlot
from capturepicker.core.capture.synthesizer import synthesize
from capturepicker.core.capture.validator import (
    INVALID_OPTIONS_MESSAGE,
    InvalidConfigurationError,
    validate_request,
)

__all__ = [
    "INVALID_OPTIONS_MESSAGE",
    "CaptureOptions",
    "CapturerInterface",
    "DesktopCapturer",
    "DesktopMediaList",
    "EventChannel",
    "InvalidConfigurationError",
    "RefreshFinished",
    "ResultEmitter",
    "ScreenCapturer",
    "SourceAdded",
    "SourceDescriptor",
    "SourceListController",
    "SourceListEvent",
    "SourceListSlot",
    "SourceMoved",
    "SourceNameChanged",
    "SourceRemoved",
    "SourceThumbnailChanged",
    "WindowCapturer",
    "apply_event",
    "create_screen_capturer",
    "create_window_capturer",
    "synthesize",
    "validate_request",
]
