"""Shared fixtures for capturepicker tests."""

import os

# Must be set before any QApplication is created
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from typing import Callable, Iterable, Optional  # noqa: E402

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from capturepicker.core.capture.backend import CapturerInterface, SourceDescriptor  # noqa: E402
from capturepicker.core.capture.events import RefreshFinished, SourceAdded  # noqa: E402
from capturepicker.core.models import Source, SourceType  # noqa: E402


class FakeCapturer(CapturerInterface):
    """In-memory capturer returning solid-color bitmaps."""

    def __init__(
        self,
        source_type: SourceType,
        sources: Iterable[tuple[int, str]] = (),
        image_size: tuple[int, int] = (320, 200),
        failing_ids: Iterable[int] = (),
    ):
        super().__init__()
        self.source_type = source_type
        self.sources = list(sources)
        self.image_size = image_size
        self.failing_ids = set(failing_ids)
        self.capture_calls: list[int] = []

    def get_source_list(self) -> list[SourceDescriptor]:
        if self.is_closed:
            return []
        return [SourceDescriptor(self.source_type, nid, name) for nid, name in self.sources]

    def capture(self, native_id: int) -> Optional[np.ndarray]:
        self.capture_calls.append(native_id)
        if self.is_closed or native_id in self.failing_ids:
            return None
        width, height = self.image_size
        return np.full((height, width, 3), native_id % 256, dtype=np.uint8)


class FakeMediaList:
    """Media list whose events are delivered by the test, synchronously."""

    def __init__(self):
        self.observer = None
        self.start_count = 0
        self.stopped = False

    def start_updating(self, observer) -> None:
        self.observer = observer
        self.start_count += 1

    def stop_updating(self) -> None:
        self.stopped = True

    def deliver(self, *events) -> list:
        return [self.observer(event) for event in events]


class ImmediateMediaList(FakeMediaList):
    """Media list that reports its sources and finishes inside start_updating."""

    def __init__(self, sources: Iterable[Source]):
        super().__init__()
        self.sources = list(sources)

    def start_updating(self, observer) -> None:
        super().start_updating(observer)
        for index, source in enumerate(self.sources):
            observer(SourceAdded(index, source))
        observer(RefreshFinished())


def make_source(source_id: str, name: str, size: tuple[int, int] = (150, 150), value: int = 0):
    width, height = size
    return Source(
        id=source_id,
        name=name,
        thumbnail=np.full((height, width, 3), value, dtype=np.uint8),
    )


@pytest.fixture
def fake_capturer() -> Callable[..., FakeCapturer]:
    """Factory for FakeCapturer instances."""
    return FakeCapturer


@pytest.fixture
def fake_media_list() -> Callable[[], FakeMediaList]:
    """Factory for FakeMediaList instances."""
    return FakeMediaList


@pytest.fixture
def immediate_media_list() -> Callable[..., ImmediateMediaList]:
    """Factory for ImmediateMediaList instances."""
    return ImmediateMediaList


@pytest.fixture
def source_factory() -> Callable[..., Source]:
    """Factory for Source instances with solid thumbnails."""
    return make_source
