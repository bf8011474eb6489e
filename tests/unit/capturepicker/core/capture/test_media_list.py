"""Unit tests for DesktopMediaList.

Refreshes are driven synchronously through a recording channel, except for
the round-trip tests which use the Qt event loop.
"""

from unittest.mock import MagicMock

import pytest

from capturepicker.core.capture.events import (
    RefreshFinished,
    SourceAdded,
    SourceMoved,
    SourceNameChanged,
    SourceRemoved,
    SourceThumbnailChanged,
    apply_event,
)
from capturepicker.core.capture.media_list import DesktopMediaList, EventChannel
from capturepicker.core.models import Resolution, SourceType


class RecordingChannel:
    """Stands in for EventChannel, keeping posted events in order."""

    def __init__(self):
        self.events = []

    def post(self, event):
        self.events.append(event)

    def close(self):
        pass


def refresh_sync(media_list):
    channel = RecordingChannel()
    media_list._channel = channel
    media_list._refresh()
    return channel.events


def replay(state, events):
    for event in events:
        state = apply_event(state, event)
    return state


def names(state):
    return [(s.id, s.name) for s in state]


class TestRefresh:
    """Test one refresh cycle."""

    def test_first_refresh_adds_screens_then_windows(self, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1"), (2, "Screen 2")])
        windows = fake_capturer(SourceType.WINDOW, [(40, "Editor")])
        media_list = DesktopMediaList(screens, windows)

        events = refresh_sync(media_list)

        added = [e for e in events if isinstance(e, SourceAdded)]
        assert [(e.index, e.source.id, e.source.name) for e in added] == [
            (0, "screen:1:0", "Screen 1"),
            (1, "screen:2:0", "Screen 2"),
            (2, "window:40:0", "Editor"),
        ]
        assert isinstance(events[-1], RefreshFinished)
        assert sum(isinstance(e, RefreshFinished) for e in events) == 1

    def test_additions_precede_thumbnails(self, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1")])
        events = refresh_sync(DesktopMediaList(screens))

        assert [type(e) for e in events] == [
            SourceAdded,
            SourceThumbnailChanged,
            RefreshFinished,
        ]

    def test_thumbnails_have_exact_size(self, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1")], image_size=(1920, 1080))
        media_list = DesktopMediaList(screens, thumbnail_size=Resolution(64, 48))

        events = refresh_sync(media_list)

        added = events[0]
        thumbnail = events[1]
        assert added.source.thumbnail.shape == (48, 64, 3)
        assert thumbnail.thumbnail.shape == (48, 64, 3)

    def test_unchanged_thumbnails_not_reposted(self, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1"), (2, "Screen 2")])
        media_list = DesktopMediaList(screens)

        refresh_sync(media_list)
        events = refresh_sync(media_list)

        assert [type(e) for e in events] == [RefreshFinished]

    def test_set_thumbnail_size_regenerates_thumbnails(self, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1")])
        media_list = DesktopMediaList(screens)
        refresh_sync(media_list)

        media_list.set_thumbnail_size(Resolution(32, 32))
        events = refresh_sync(media_list)

        assert media_list.thumbnail_size == Resolution(32, 32)
        assert [type(e) for e in events] == [SourceThumbnailChanged, RefreshFinished]
        assert events[0].thumbnail.shape == (32, 32, 3)

    def test_failed_capture_keeps_blank_thumbnail(self, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1")], failing_ids=[1])
        events = refresh_sync(DesktopMediaList(screens))

        assert [type(e) for e in events] == [SourceAdded, RefreshFinished]
        assert not events[0].source.thumbnail.any()

    def test_enumeration_error_still_finishes(self, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1")])
        windows = fake_capturer(SourceType.WINDOW, [(40, "Editor")])
        windows.get_source_list = MagicMock(side_effect=RuntimeError("display gone"))

        events = refresh_sync(DesktopMediaList(screens, windows))

        assert [e.source.id for e in events if isinstance(e, SourceAdded)] == ["screen:1:0"]
        assert isinstance(events[-1], RefreshFinished)

    def test_unexpected_error_still_finishes(self, monkeypatch, fake_capturer):
        media_list = DesktopMediaList(fake_capturer(SourceType.SCREEN, [(1, "Screen 1")]))

        def broken(descriptors):
            raise RuntimeError("boom")

        monkeypatch.setattr(media_list, "_update_sources", broken)
        assert [type(e) for e in refresh_sync(media_list)] == [RefreshFinished]

    def test_duplicate_ids_reported_once(self, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1"), (1, "Screen 1 again")])
        events = refresh_sync(DesktopMediaList(screens))

        assert [e.source.name for e in events if isinstance(e, SourceAdded)] == ["Screen 1"]

    def test_no_capturers(self):
        assert [type(e) for e in refresh_sync(DesktopMediaList())] == [RefreshFinished]


class TestUpdateSources:
    """Events always transform the previously reported list into the new one."""

    @pytest.mark.parametrize(
        "before, after",
        [
            ([], [(1, "A"), (2, "B")]),
            ([(1, "A"), (2, "B")], []),
            ([(1, "A"), (2, "B"), (3, "C")], [(3, "C"), (1, "A"), (2, "B")]),
            ([(1, "A"), (2, "B"), (3, "C")], [(2, "B"), (4, "D")]),
            ([(1, "A"), (2, "B")], [(2, "B renamed"), (1, "A")]),
            ([(1, "A"), (2, "B"), (3, "C"), (4, "D")], [(4, "D"), (5, "E"), (2, "B"), (1, "A")]),
        ],
    )
    def test_events_reproduce_new_list(self, before, after, fake_capturer):
        capturer = fake_capturer(SourceType.WINDOW, before)
        media_list = DesktopMediaList(window_capturer=capturer)
        state = replay((), media_list._update_sources(capturer.get_source_list()))

        capturer.sources = after
        state = replay(state, media_list._update_sources(capturer.get_source_list()))

        assert names(state) == [(f"window:{nid}:0", name) for nid, name in after]

    def test_removals_use_highest_index_first(self, fake_capturer):
        capturer = fake_capturer(SourceType.WINDOW, [(1, "A"), (2, "B"), (3, "C")])
        media_list = DesktopMediaList(window_capturer=capturer)
        media_list._update_sources(capturer.get_source_list())

        capturer.sources = [(2, "B")]
        events = media_list._update_sources(capturer.get_source_list())

        assert events == [SourceRemoved(2), SourceRemoved(0)]

    def test_move_and_rename(self, fake_capturer):
        capturer = fake_capturer(SourceType.WINDOW, [(1, "A"), (2, "B")])
        media_list = DesktopMediaList(window_capturer=capturer)
        media_list._update_sources(capturer.get_source_list())

        capturer.sources = [(2, "B2"), (1, "A")]
        events = media_list._update_sources(capturer.get_source_list())

        assert events == [SourceMoved(1, 0), SourceNameChanged(0, "B2")]


@pytest.mark.usefixtures("qapp")
class TestUpdating:
    """Test observer registration and queued delivery."""

    def test_start_updating_twice_raises(self, fake_capturer):
        media_list = DesktopMediaList(fake_capturer(SourceType.SCREEN, [(1, "Screen 1")]))
        media_list.start_updating(lambda event: False)
        try:
            with pytest.raises(RuntimeError, match="already has an observer"):
                media_list.start_updating(lambda event: False)
        finally:
            media_list.stop_updating()

    def test_start_after_stop_raises(self):
        media_list = DesktopMediaList()
        media_list.stop_updating()
        with pytest.raises(RuntimeError, match="has been stopped"):
            media_list.start_updating(lambda event: False)

    def test_events_delivered_on_owner_thread(self, qtbot, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1"), (2, "Screen 2")])
        media_list = DesktopMediaList(screens)
        received = []

        def observer(event):
            received.append(event)
            return False

        media_list.start_updating(observer)
        qtbot.waitUntil(lambda: any(isinstance(e, RefreshFinished) for e in received), timeout=5000)
        media_list.stop_updating()

        state = replay((), received)
        assert names(state) == [("screen:1:0", "Screen 1"), ("screen:2:0", "Screen 2")]
        assert media_list.refresh_count == 1

    def test_observer_requests_another_refresh(self, qtbot, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1")])
        media_list = DesktopMediaList(screens, update_period_ms=10)
        finished = []

        def observer(event):
            if isinstance(event, RefreshFinished):
                finished.append(event)
            return True

        media_list.start_updating(observer)
        qtbot.waitUntil(lambda: len(finished) >= 2, timeout=5000)
        media_list.stop_updating()

        assert media_list.refresh_count >= 2
        assert not media_list.is_updating

    def test_stop_updating_drops_queued_events(self, qtbot, fake_capturer):
        screens = fake_capturer(SourceType.SCREEN, [(1, "Screen 1")])
        media_list = DesktopMediaList(screens)
        received = []

        media_list.start_updating(received.append)
        media_list.stop_updating()
        qtbot.wait(200)

        assert received == []
        assert screens.is_closed


@pytest.mark.usefixtures("qapp")
class TestEventChannel:
    def test_post_is_queued(self, qtbot):
        received = []
        channel = EventChannel(received.append)

        channel.post(RefreshFinished())
        assert received == []

        qtbot.waitUntil(lambda: len(received) == 1, timeout=1000)

    def test_closed_channel_drops_events(self, qtbot):
        received = []
        channel = EventChannel(received.append)

        channel.post(RefreshFinished())
        channel.close()
        qtbot.wait(50)

        assert channel.is_closed
        assert received == []

