"""Dialogs for the capturepicker desktop UI."""

from capturepicker.desktop.dialogs.source_picker import SourcePickerDialog

__all__ = ["SourcePickerDialog"]
