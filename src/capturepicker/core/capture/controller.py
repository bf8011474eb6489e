"""Source list controller for one listing session.

The controller owns a session's source list. It binds a media list to the
request, folds every backend notification into its ``SourceListSlot`` and,
on ``RefreshFinished``, freezes the list into a ``CaptureResult``.

State Machine:
    IDLE -> ACTIVE (start)
    ACTIVE -> COMPLETED (RefreshFinished, result delivered)
    ACTIVE -> ABANDONED (abandon, no result)
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable, Optional, Protocol

from capturepicker.core.capture.events import RefreshFinished, SourceListEvent
from capturepicker.core.capture.source_list import SourceListSlot
from capturepicker.core.capture.synthesizer import synthesize
from capturepicker.core.models import CaptureRequest, CaptureResult, ControllerState

logger = logging.getLogger(__name__)

_session_ids = itertools.count(1)


class MediaList(Protocol):
    """What the controller needs from a media list."""

    def start_updating(self, observer: Callable[[SourceListEvent], Optional[bool]]) -> None: ...

    def stop_updating(self) -> None: ...


MediaListFactory = Callable[[CaptureRequest], MediaList]
ResultCallback = Callable[[CaptureResult], None]


class SourceListController:
    """Drives one enumeration session to exactly one result."""

    def __init__(
        self,
        request: CaptureRequest,
        media_list_factory: MediaListFactory,
        on_finished: ResultCallback,
    ):
        """Initialize the controller.

        Args:
            request: Validated request for this session
            media_list_factory: Builds a media list bound to fresh capturers for the request
            on_finished: Receives the result when the session completes
        """
        self._session_id = next(_session_ids)
        self._request = request
        self._media_list_factory = media_list_factory
        self._on_finished = on_finished
        self._state = ControllerState.IDLE
        self._media_list: Optional[MediaList] = None
        self._slot: Optional[SourceListSlot] = None
        self._dropped_events = 0

    @property
    def session_id(self) -> int:
        return self._session_id

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def request(self) -> CaptureRequest:
        return self._request

    @property
    def dropped_events(self) -> int:
        """Number of notifications ignored because the session was over."""
        return self._dropped_events

    def start(self) -> None:
        """Bind a media list and begin enumeration.

        Raises:
            RuntimeError: If the controller has already been started
        """
        if self._state != ControllerState.IDLE:
            raise RuntimeError(f"Session {self._session_id} cannot start from {self._state.value}")

        self._media_list = self._media_list_factory(self._request)
        self._slot = SourceListSlot()
        self._state = ControllerState.ACTIVE
        logger.info(
            f"Session {self._session_id} active: "
            f"types={sorted(t.value for t in self._request.types)}, "
            f"thumbnail={self._request.thumbnail_size}"
        )
        self._media_list.start_updating(self.handle_event)

    def handle_event(self, event: SourceListEvent) -> bool:
        """Process one backend notification.

        Args:
            event: Notification from the media list

        Returns:
            True to keep receiving refreshes, False when the session is over
        """
        slot = self._slot
        if self._state != ControllerState.ACTIVE or slot is None or not slot.is_valid:
            self._dropped_events += 1
            logger.debug(
                f"Session {self._session_id} is {self._state.value}, "
                f"dropping {type(event).__name__}"
            )
            return False

        if isinstance(event, RefreshFinished):
            self._complete(slot)
            return False

        slot.apply(event)
        return True

    def abandon(self) -> None:
        """Tear the session down early without producing a result."""
        if self._state != ControllerState.ACTIVE:
            return
        self._teardown()
        self._state = ControllerState.ABANDONED
        logger.info(f"Session {self._session_id} abandoned")

    def _complete(self, slot: SourceListSlot) -> None:
        sources = slot.snapshot()
        self._teardown()
        self._state = ControllerState.COMPLETED
        logger.info(f"Session {self._session_id} completed with {len(sources)} source(s)")

        result = synthesize(sources, self._request.thumbnail_size)
        self._on_finished(result)

    def _teardown(self) -> None:
        if self._slot is not None:
            self._slot.release()
            self._slot = None
        if self._media_list is not None:
            media_list, self._media_list = self._media_list, None
            media_list.stop_updating()

    def __repr__(self) -> str:
        return f"SourceListController(session={self._session_id}, state={self._state.value})"
