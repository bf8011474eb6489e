"""Desktop capturer entry point.

``DesktopCapturer.start_handling`` validates a request, starts an isolated
listing session and returns immediately. The session ends with exactly one
``handling_finished(error_message, sources)`` signal.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Signal

from capturepicker.core.capture.backend import (
    CaptureOptions,
    create_screen_capturer,
    create_window_capturer,
)
from capturepicker.core.capture.controller import MediaList, SourceListController
from capturepicker.core.capture.emitter import ResultEmitter
from capturepicker.core.capture.media_list import DesktopMediaList
from capturepicker.core.capture.validator import InvalidConfigurationError, validate_request
from capturepicker.core.models import CaptureRequest, CaptureResult, PickerSettings

logger = logging.getLogger(__name__)


class DesktopCapturer(QObject):
    """Lists capturable screens and windows with thumbnails.

    Each ``start_handling`` call gets its own controller, source list and
    capturer instances, so overlapping sessions never share state. Results
    arrive on the thread whose event loop owns this object.

    Signals:
        handling_finished: Emitted once per request
            Args:
                error_message (str): Empty on success
                sources (list[SourceRecord]): Sources in list order, empty on failure
    """

    handling_finished = Signal(str, object)

    def __init__(
        self,
        settings: Optional[PickerSettings] = None,
        media_list_factory: Optional[Callable[[CaptureRequest], MediaList]] = None,
        parent: Optional[QObject] = None,
    ):
        """Initialize the DesktopCapturer.

        Args:
            settings: Optional settings, defaults to PickerSettings()
            media_list_factory: Optional override for building media lists
            parent: Optional parent QObject
        """
        super().__init__(parent)
        self._settings = settings or PickerSettings()
        self._media_list_factory = media_list_factory or self._create_media_list
        self._sessions: dict[int, SourceListController] = {}
        logger.info("DesktopCapturer initialized")

    @property
    def settings(self) -> PickerSettings:
        return self._settings

    @property
    def pending_sessions(self) -> int:
        """Number of sessions still waiting for their refresh to finish."""
        return len(self._sessions)

    def start_handling(self, options: Optional[Mapping[str, Any]]) -> None:
        """Start listing sources.

        Invalid options finish synchronously with "Invalid options." and no
        sources; no capturer is created.

        Args:
            options: ``{"types": ["screen", "window"], "thumbnailSize": {"width": w, "height": h}}``
        """
        try:
            request = validate_request(options, self._settings.default_thumbnail_size)
        except InvalidConfigurationError as e:
            ResultEmitter(self._emit_finished).emit(str(e), [])
            return

        def on_finished(result: CaptureResult) -> None:
            self._sessions.pop(controller.session_id, None)
            emitter.emit_result(result)

        controller = SourceListController(request, self._media_list_factory, on_finished)
        emitter = ResultEmitter(self._emit_finished, controller.session_id)
        self._sessions[controller.session_id] = controller
        try:
            controller.start()
        except Exception:
            self._sessions.pop(controller.session_id, None)
            controller.abandon()
            raise

    def dispose(self) -> None:
        """Abandon every pending session. No terminal events are emitted for them."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for controller in sessions:
            controller.abandon()
        if sessions:
            logger.info(f"Disposed {len(sessions)} pending session(s)")

    def _emit_finished(self, error_message: str, sources: list) -> None:
        self.handling_finished.emit(error_message, sources)

    def _create_media_list(self, request: CaptureRequest) -> DesktopMediaList:
        options = CaptureOptions(skip_untitled_windows=self._settings.skip_untitled_windows)
        screen_capturer = create_screen_capturer(options) if request.wants_screens else None
        window_capturer = create_window_capturer(options) if request.wants_windows else None
        return DesktopMediaList(
            screen_capturer,
            window_capturer,
            thumbnail_size=request.thumbnail_size,
            update_period_ms=self._settings.update_period_ms,
        )
