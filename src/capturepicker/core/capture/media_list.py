"""Backend-driven desktop media list.

``DesktopMediaList`` binds a screen capturer and a window capturer to a
thumbnail size and drives refresh cycles on a worker thread. Each refresh is
reported to a single observer as an ordered stream of source list events,
delivered through a Qt queued connection on the thread that owns the list.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, QTimer, Signal, Slot

from capturepicker.core.capture.backend import CapturerInterface, SourceDescriptor
from capturepicker.core.capture.events import (
    RefreshFinished,
    SourceAdded,
    SourceListEvent,
    SourceMoved,
    SourceNameChanged,
    SourceRemoved,
    SourceThumbnailChanged,
)
from capturepicker.core.imaging import blank_thumbnail, scale_to_thumbnail, thumbnail_digest
from capturepicker.core.models import DEFAULT_THUMBNAIL_SIZE, Resolution, Source, SourceType

logger = logging.getLogger(__name__)

# Returning True from the observer for RefreshFinished schedules another refresh
MediaListObserver = Callable[[SourceListEvent], Optional[bool]]

DEFAULT_UPDATE_PERIOD_MS = 1000


class EventChannel(QObject):
    """Queued hand-off of events from any thread to the channel's thread.

    Events are delivered one at a time, in posting order. After ``close()``
    pending and future events are dropped.
    """

    _posted = Signal(object)

    def __init__(
        self, handler: Callable[[SourceListEvent], None], parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self._handler: Optional[Callable[[SourceListEvent], None]] = handler
        self._posted.connect(self._deliver, Qt.ConnectionType.QueuedConnection)

    @property
    def is_closed(self) -> bool:
        return self._handler is None

    def post(self, event: SourceListEvent) -> None:
        """Queue an event for delivery. Safe to call from any thread."""
        self._posted.emit(event)

    def close(self) -> None:
        self._handler = None

    @Slot(object)
    def _deliver(self, event: SourceListEvent) -> None:
        handler = self._handler
        if handler is None:
            logger.debug(f"Channel closed, dropping {type(event).__name__}")
            return
        handler(event)


class DesktopMediaList:
    """Ordered list of desktop sources kept in sync with capture backends.

    The list itself is never exposed. Observers rebuild it from the events,
    which always describe the transition from the previously reported state.

    Threading:
        Construction, ``start_updating`` and ``stop_updating`` happen on the
        owner's thread. Enumeration and thumbnail capture run on a worker
        thread; only one refresh is in flight at a time.
    """

    def __init__(
        self,
        screen_capturer: Optional[CapturerInterface] = None,
        window_capturer: Optional[CapturerInterface] = None,
        thumbnail_size: Resolution = DEFAULT_THUMBNAIL_SIZE,
        update_period_ms: int = DEFAULT_UPDATE_PERIOD_MS,
    ):
        """Initialize the media list.

        Args:
            screen_capturer: Handle enumerating screens, or None
            window_capturer: Handle enumerating windows, or None
            thumbnail_size: Exact size of generated thumbnails
            update_period_ms: Delay before a follow-up refresh
        """
        self._capturers: dict[SourceType, CapturerInterface] = {}
        for capturer in (screen_capturer, window_capturer):
            if capturer is not None:
                self._capturers[capturer.source_type] = capturer

        self._thumbnail_size = thumbnail_size
        self._update_period_ms = update_period_ms
        self._observer: Optional[MediaListObserver] = None
        self._channel: Optional[EventChannel] = None
        self._stop_event = threading.Event()
        self._refresh_thread: Optional[threading.Thread] = None
        self._refresh_count = 0

        # Worker-side view of what has been reported to the observer
        self._reported: list[SourceDescriptor] = []
        self._digests: dict[str, int] = {}

        logger.debug(
            f"DesktopMediaList created with capturers "
            f"{[t.value for t in self._capturers]}, thumbnails {thumbnail_size}"
        )

    @property
    def thumbnail_size(self) -> Resolution:
        return self._thumbnail_size

    @property
    def is_updating(self) -> bool:
        return self._observer is not None

    @property
    def refresh_count(self) -> int:
        """Number of refreshes started so far."""
        return self._refresh_count

    def set_thumbnail_size(self, size: Resolution) -> None:
        """Change the thumbnail size. Every thumbnail is regenerated on the next refresh."""
        if self._refresh_thread is not None and self._refresh_thread.is_alive():
            raise RuntimeError("Cannot change thumbnail size while a refresh is running")
        self._thumbnail_size = size
        self._digests.clear()

    def start_updating(self, observer: MediaListObserver) -> None:
        """Register the observer and schedule the first refresh.

        Raises:
            RuntimeError: If the list is already updating or has been stopped
        """
        if self._observer is not None:
            raise RuntimeError("DesktopMediaList already has an observer")
        if self._stop_event.is_set():
            raise RuntimeError("DesktopMediaList has been stopped")

        self._observer = observer
        self._channel = EventChannel(self._dispatch)
        self._start_refresh()

    def stop_updating(self) -> None:
        """Detach the observer and release the capturers.

        Events still queued are dropped. Does not wait for a running refresh.
        """
        self._stop_event.set()
        self._observer = None
        if self._channel is not None:
            self._channel.close()
        for capturer in self._capturers.values():
            capturer.close()
        logger.debug("DesktopMediaList stopped")

    # ========================================================================
    # Owner-thread side
    # ========================================================================

    def _start_refresh(self) -> None:
        if self._stop_event.is_set():
            return
        self._refresh_count += 1
        self._refresh_thread = threading.Thread(
            target=self._refresh,
            name=f"MediaList-{self._refresh_count}",
            daemon=True,
        )
        self._refresh_thread.start()

    def _dispatch(self, event: SourceListEvent) -> None:
        observer = self._observer
        if observer is None:
            logger.debug(f"No observer, dropping {type(event).__name__}")
            return

        keep_updating = observer(event)

        if isinstance(event, RefreshFinished):
            if keep_updating and not self._stop_event.is_set():
                QTimer.singleShot(self._update_period_ms, self._start_refresh)
            else:
                logger.debug("Observer finished, no further refresh scheduled")

    # ========================================================================
    # Worker-thread side
    # ========================================================================

    def _post(self, event: SourceListEvent) -> None:
        channel = self._channel
        if channel is not None and not self._stop_event.is_set():
            channel.post(event)

    def _refresh(self) -> None:
        try:
            descriptors = self._enumerate()
            for event in self._update_sources(descriptors):
                self._post(event)
            self._update_thumbnails()
        except Exception as e:
            logger.error(f"Error refreshing desktop media list: {e}", exc_info=True)
        finally:
            self._post(RefreshFinished())

    def _enumerate(self) -> list[SourceDescriptor]:
        descriptors: list[SourceDescriptor] = []
        seen: set[str] = set()

        for source_type in (SourceType.SCREEN, SourceType.WINDOW):
            capturer = self._capturers.get(source_type)
            if capturer is None:
                continue
            try:
                found = capturer.get_source_list()
            except Exception as e:
                logger.error(f"Error enumerating {source_type.value} sources: {e}", exc_info=True)
                continue

            for descriptor in found:
                if descriptor.id in seen:
                    logger.warning(f"Skipping duplicate source id: {descriptor.id}")
                    continue
                seen.add(descriptor.id)
                descriptors.append(descriptor)

        return descriptors

    def _update_sources(self, new_sources: list[SourceDescriptor]) -> list[SourceListEvent]:
        """Diff the enumeration against the reported list.

        Produces removals (highest index first), then for each new position
        an addition or a move, followed by a rename when the name changed.
        """
        events: list[SourceListEvent] = []
        current = list(self._reported)
        new_ids = {d.id for d in new_sources}

        for i in range(len(current) - 1, -1, -1):
            if current[i].id not in new_ids:
                self._digests.pop(current[i].id, None)
                del current[i]
                events.append(SourceRemoved(i))

        for i, descriptor in enumerate(new_sources):
            if i >= len(current) or current[i].id != descriptor.id:
                old_index = next(
                    (j for j in range(i + 1, len(current)) if current[j].id == descriptor.id),
                    None,
                )
                if old_index is None:
                    current.insert(i, descriptor)
                    source = Source(
                        id=descriptor.id,
                        name=descriptor.name,
                        thumbnail=blank_thumbnail(self._thumbnail_size),
                    )
                    events.append(SourceAdded(i, source))
                    continue

                current.insert(i, current.pop(old_index))
                events.append(SourceMoved(old_index, i))

            if current[i].name != descriptor.name:
                events.append(SourceNameChanged(i, descriptor.name))
            current[i] = descriptor

        self._reported = current
        return events

    def _update_thumbnails(self) -> None:
        for index, descriptor in enumerate(self._reported):
            if self._stop_event.is_set():
                return

            capturer = self._capturers.get(descriptor.source_type)
            if capturer is None:
                continue
            try:
                image = capturer.capture(descriptor.native_id)
            except Exception as e:
                logger.error(f"Error capturing {descriptor.id}: {e}", exc_info=True)
                continue
            if image is None:
                continue

            thumbnail = scale_to_thumbnail(image, self._thumbnail_size)
            digest = thumbnail_digest(thumbnail)
            if self._digests.get(descriptor.id) == digest:
                continue
            self._digests[descriptor.id] = digest
            self._post(SourceThumbnailChanged(index, thumbnail))
