"""Settings persistence."""

from capturepicker.core.settings.manager import SettingsManager

__all__ = ["SettingsManager"]
