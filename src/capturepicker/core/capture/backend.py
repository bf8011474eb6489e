"""Capture backends for screens and windows.

This module provides the capturer interface consumed by the media list and
its two implementations: ``ScreenCapturer`` (mss) and ``WindowCapturer``
(Quartz on macOS, pywin32 on Windows, python-xlib on Linux). Every platform
branch lives here; the rest of the package treats capturers as opaque.
"""

from __future__ import annotations

import logging
import platform
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

import numpy as np

from capturepicker.core.models import SourceType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureOptions:
    """Backend tuning shared by the capturers of one session."""

    skip_untitled_windows: bool = True
    excluded_window_ids: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def create_default(cls) -> CaptureOptions:
        return cls()


@dataclass(frozen=True)
class SourceDescriptor:
    """A source as reported by a capturer, before any thumbnail exists."""

    source_type: SourceType
    native_id: int
    name: str

    @property
    def id(self) -> str:
        """Opaque id in ``<type>:<native id>:0`` form."""
        return f"{self.source_type.value}:{self.native_id}:0"


def _bgra_to_rgb(img: np.ndarray) -> np.ndarray:
    img = img[:, :, :3]  # Drop alpha
    return np.ascontiguousarray(img[:, :, ::-1])  # BGR to RGB


class CapturerInterface(ABC):
    """Abstract interface for a capture backend handle.

    A handle enumerates sources of one type and grabs a full-size RGB bitmap
    of any of them. Methods are called from the media list's worker thread.
    """

    source_type: SourceType

    def __init__(self, options: Optional[CaptureOptions] = None):
        self._options = options or CaptureOptions.create_default()
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @abstractmethod
    def get_source_list(self) -> list[SourceDescriptor]:
        """Enumerate the sources this capturer can grab.

        Returns:
            Descriptors in the platform's natural order
        """
        pass

    @abstractmethod
    def capture(self, native_id: int) -> Optional[np.ndarray]:
        """Grab one source.

        Args:
            native_id: Native id from a SourceDescriptor

        Returns:
            RGB bitmap (H x W x 3, uint8), or None if capture fails
        """
        pass

    def close(self) -> None:
        """Release the handle. A closed capturer enumerates nothing."""
        if not self._closed:
            logger.debug(f"{type(self).__name__} closed")
        self._closed = True


class ScreenCapturer(CapturerInterface):
    """Enumerates and grabs physical displays using mss."""

    source_type = SourceType.SCREEN

    def get_source_list(self) -> list[SourceDescriptor]:
        if self._closed:
            return []

        import mss

        screens: list[SourceDescriptor] = []
        with mss.mss() as sct:
            # Monitor 0 is the "all monitors" virtual screen, skip it
            for i, monitor in enumerate(sct.monitors[1:], start=1):
                screens.append(
                    SourceDescriptor(source_type=SourceType.SCREEN, native_id=i, name=f"Screen {i}")
                )
                logger.debug(f"Found screen {i}: {monitor.get('width')}x{monitor.get('height')}")

        logger.debug(f"Found {len(screens)} screen(s)")
        return screens

    def capture(self, native_id: int) -> Optional[np.ndarray]:
        if self._closed:
            return None

        import mss

        try:
            with mss.mss() as sct:
                if not 0 < native_id < len(sct.monitors):
                    logger.warning(f"Screen {native_id} no longer exists")
                    return None
                screenshot = sct.grab(sct.monitors[native_id])
                return _bgra_to_rgb(np.array(screenshot))
        except Exception as e:
            logger.error(f"Error capturing screen {native_id}: {e}", exc_info=True)
            return None


class WindowCapturer(CapturerInterface):
    """Enumerates and grabs top-level application windows."""

    source_type = SourceType.WINDOW

    def __init__(self, options: Optional[CaptureOptions] = None):
        super().__init__(options)
        self._platform = platform.system()

    def get_source_list(self) -> list[SourceDescriptor]:
        if self._closed:
            return []

        if self._platform == "Darwin":
            windows = self._list_windows_macos()
        elif self._platform == "Windows":
            windows = self._list_windows_windows()
        elif self._platform == "Linux":
            windows = self._list_windows_linux()
        else:
            logger.warning(f"Unsupported platform for window capture: {self._platform}")
            return []

        windows = [w for w in windows if self._accept(w)]
        logger.debug(f"Found {len(windows)} window(s)")
        return windows

    def capture(self, native_id: int) -> Optional[np.ndarray]:
        if self._closed:
            return None

        try:
            if self._platform == "Darwin":
                return self._capture_window_macos(native_id)
            elif self._platform == "Windows":
                return self._capture_window_windows(native_id)
            elif self._platform == "Linux":
                return self._capture_window_linux(native_id)
            logger.warning(f"Unsupported platform for window capture: {self._platform}")
            return None
        except Exception as e:
            logger.error(f"Error capturing window {native_id}: {e}", exc_info=True)
            return None

    def _accept(self, window: SourceDescriptor) -> bool:
        if window.native_id in self._options.excluded_window_ids:
            return False
        if self._options.skip_untitled_windows and not window.name:
            return False
        return True

    def _window(self, native_id: int, title: str) -> SourceDescriptor:
        return SourceDescriptor(source_type=SourceType.WINDOW, native_id=native_id, name=title)

    # ========================================================================
    # macOS
    # ========================================================================

    def _list_windows_macos(self) -> list[SourceDescriptor]:
        from Quartz import (
            CGWindowListCopyWindowInfo,
            kCGNullWindowID,
            kCGWindowBounds,
            kCGWindowLayer,
            kCGWindowListExcludeDesktopElements,
            kCGWindowListOptionOnScreenOnly,
            kCGWindowName,
            kCGWindowNumber,
            kCGWindowOwnerName,
        )

        window_list = CGWindowListCopyWindowInfo(
            kCGWindowListOptionOnScreenOnly | kCGWindowListExcludeDesktopElements,
            kCGNullWindowID,
        )

        windows = []
        for window in window_list or []:
            # Only consider normal windows (layer 0)
            if window.get(kCGWindowLayer, -1) != 0:
                continue
            bounds = window.get(kCGWindowBounds, {})
            if int(bounds.get("Width", 0)) <= 0 or int(bounds.get("Height", 0)) <= 0:
                continue
            title = window.get(kCGWindowName, "") or window.get(kCGWindowOwnerName, "")
            windows.append(self._window(int(window.get(kCGWindowNumber, 0)), str(title or "")))
        return windows

    def _capture_window_macos(self, window_id: int) -> Optional[np.ndarray]:
        from Quartz import (
            CGDataProviderCopyData,
            CGImageGetBytesPerRow,
            CGImageGetDataProvider,
            CGImageGetHeight,
            CGImageGetWidth,
            CGWindowListCreateImage,
            kCGWindowImageBoundsIgnoreFraming,
            kCGWindowListOptionIncludingWindow,
        )
        from Quartz.CoreGraphics import CGRectNull

        cg_image = CGWindowListCreateImage(
            CGRectNull,
            kCGWindowListOptionIncludingWindow,
            window_id,
            kCGWindowImageBoundsIgnoreFraming,
        )
        if cg_image is None:
            logger.warning(f"Failed to capture window {window_id}")
            return None

        width = CGImageGetWidth(cg_image)
        height = CGImageGetHeight(cg_image)
        bytes_per_row = CGImageGetBytesPerRow(cg_image)
        data = CGDataProviderCopyData(CGImageGetDataProvider(cg_image))

        img = np.frombuffer(data, dtype=np.uint8).reshape((int(height), int(bytes_per_row) // 4, 4))
        return _bgra_to_rgb(img[:, : int(width), :])

    # ========================================================================
    # Windows
    # ========================================================================

    def _list_windows_windows(self) -> list[SourceDescriptor]:
        import win32gui

        windows = []

        def enum_callback(hwnd, _):
            if not win32gui.IsWindowVisible(hwnd):
                return
            x, y, right, bottom = win32gui.GetWindowRect(hwnd)
            if right - x <= 0 or bottom - y <= 0:
                return
            windows.append(self._window(int(hwnd), win32gui.GetWindowText(hwnd)))

        win32gui.EnumWindows(enum_callback, None)
        return windows

    def _capture_window_windows(self, window_id: int) -> Optional[np.ndarray]:
        import win32gui
        import win32ui

        x, y, right, bottom = win32gui.GetWindowRect(window_id)
        width = right - x
        height = bottom - y
        if width <= 0 or height <= 0:
            logger.warning(f"Invalid window dimensions: {width}x{height}")
            return None

        hwnd_dc = win32gui.GetWindowDC(window_id)
        mfc_dc = win32ui.CreateDCFromHandle(hwnd_dc)
        save_dc = mfc_dc.CreateCompatibleDC()
        save_bitmap = win32ui.CreateBitmap()
        try:
            save_bitmap.CreateCompatibleBitmap(mfc_dc, width, height)
            save_dc.SelectObject(save_bitmap)

            if win32gui.PrintWindow(window_id, save_dc.GetSafeHdc(), 0) == 0:
                logger.warning(f"PrintWindow failed for window {window_id}")
                return None

            img = np.frombuffer(save_bitmap.GetBitmapBits(True), dtype=np.uint8)
            return _bgra_to_rgb(img.reshape((height, width, 4)))
        finally:
            win32gui.DeleteObject(save_bitmap.GetHandle())
            save_dc.DeleteDC()
            mfc_dc.DeleteDC()
            win32gui.ReleaseDC(window_id, hwnd_dc)

    # ========================================================================
    # Linux
    # ========================================================================

    def _list_windows_linux(self) -> list[SourceDescriptor]:
        from Xlib import X, display

        d = display.Display()
        try:
            root = d.screen().root
            window_ids = root.get_full_property(
                d.intern_atom("_NET_CLIENT_LIST"), X.AnyPropertyType
            )

            windows = []
            for window_id in window_ids.value if window_ids else []:
                try:
                    window = d.create_resource_object("window", window_id)
                    geom = window.get_geometry()
                    if geom.width <= 0 or geom.height <= 0:
                        continue
                    title = window.get_wm_name() or ""
                    if isinstance(title, bytes):
                        title = title.decode("utf-8", errors="replace")
                    windows.append(self._window(int(window_id), title))
                except Exception as e:
                    logger.debug(f"Error processing window {window_id}: {e}")
                    continue
            return windows
        finally:
            d.close()

    def _capture_window_linux(self, window_id: int) -> Optional[np.ndarray]:
        from Xlib import X, display

        d = display.Display()
        try:
            window = d.create_resource_object("window", window_id)
            geom = window.get_geometry()
            width, height = geom.width, geom.height
            if width <= 0 or height <= 0:
                logger.warning(f"Invalid window dimensions: {width}x{height}")
                return None

            raw_image = window.get_image(0, 0, width, height, X.ZPixmap, 0xFFFFFFFF)
            # X11 typically returns BGRA format
            img = np.frombuffer(raw_image.data, dtype=np.uint8).reshape((height, width, 4))
            return _bgra_to_rgb(img)
        finally:
            d.close()


def _window_libraries_available(system: str) -> bool:
    try:
        if system == "Darwin":
            import Quartz  # noqa: F401
        elif system == "Windows":
            import win32gui  # noqa: F401
            import win32ui  # noqa: F401
        elif system == "Linux":
            import Xlib.display  # noqa: F401
        else:
            return False
        return True
    except ImportError as e:
        hints = {
            "Darwin": "pyobjc-framework-Quartz>=10.3.1",
            "Windows": "pywin32>=308",
            "Linux": "python-xlib>=0.33",
        }
        logger.warning(f"Window capture unavailable: {e}. Install with: uv add '{hints[system]}'")
        return False


def create_screen_capturer(options: Optional[CaptureOptions] = None) -> Optional[ScreenCapturer]:
    """Create a screen capturer, or None if mss is unavailable."""
    try:
        import mss  # noqa: F401
    except ImportError as e:
        logger.warning(f"Screen capture unavailable: {e}. Install with: uv add 'mss>=9.0'")
        return None
    return ScreenCapturer(options)


def create_window_capturer(options: Optional[CaptureOptions] = None) -> Optional[WindowCapturer]:
    """Create a window capturer, or None if the platform cannot list windows."""
    system = platform.system()
    if not _window_libraries_available(system):
        return None
    return WindowCapturer(options)
