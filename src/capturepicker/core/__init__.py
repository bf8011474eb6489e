"""Core source listing logic."""

from capturepicker.core.capture import DesktopCapturer
from capturepicker.core.models import CaptureResult, PickerSettings, SourceRecord

__all__ = ["CaptureResult", "DesktopCapturer", "PickerSettings", "SourceRecord"]
