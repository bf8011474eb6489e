"""Settings manager for capturepicker.

Persists ``PickerSettings`` as JSON in the user's config directory.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from capturepicker.core.capture.validator import parse_thumbnail_size
from capturepicker.core.models import PickerSettings

logger = logging.getLogger(__name__)


class SettingsManager:
    """Loads and saves picker settings.

    Provides methods for:
    - Loading settings from a JSON file, falling back to defaults
    - Saving settings atomically
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize settings manager.

        Args:
            config_dir: Optional custom config directory. If None, uses platform default.
        """
        if config_dir is None:
            config_dir = self._get_default_config_dir()

        self.config_dir = config_dir
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.settings_file = self.config_dir / "settings.json"

        logger.info(f"Settings manager initialized with config dir: {self.config_dir}")

    @staticmethod
    def _get_default_config_dir() -> Path:
        if sys.platform == "darwin":
            # macOS: ~/Library/Application Support/capturepicker
            base = Path.home() / "Library" / "Application Support"
        elif sys.platform == "win32":
            # Windows: %APPDATA%/capturepicker
            base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        else:
            # Linux: ~/.config/capturepicker
            base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

        return base / "capturepicker"

    def load_settings(self, path: Optional[Path] = None) -> PickerSettings:
        """Load settings from storage.

        Args:
            path: Optional settings file to read instead of the default one

        Returns:
            PickerSettings, or defaults if the file doesn't exist

        Raises:
            ValueError: If settings file is corrupted or invalid
        """
        settings_file = path or self.settings_file
        if not settings_file.exists():
            logger.info("Settings file not found, using default settings")
            return PickerSettings()

        try:
            with open(settings_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse settings file: {e}")
            raise ValueError(f"Settings file is corrupted: {e}") from e

        settings = self._deserialize_settings(data)
        logger.info(f"Settings loaded from {settings_file}")
        return settings

    def save_settings(self, settings: PickerSettings) -> None:
        """Save settings to storage.

        Raises:
            IOError: If settings file cannot be written
        """
        try:
            data = self._serialize_settings(settings)

            # Write to temporary file first, then rename (atomic operation)
            temp_file = self.settings_file.with_suffix(".tmp")
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_file.replace(self.settings_file)

            logger.info("Settings saved successfully")

        except OSError as e:
            logger.error(f"Failed to save settings: {e}")
            raise IOError(f"Failed to save settings: {e}") from e

    def _serialize_settings(self, settings: PickerSettings) -> Dict[str, Any]:
        return {
            "default_thumbnail_size": {
                "width": settings.default_thumbnail_size.width,
                "height": settings.default_thumbnail_size.height,
            },
            "update_period_ms": settings.update_period_ms,
            "skip_untitled_windows": settings.skip_untitled_windows,
        }

    def _deserialize_settings(self, data: Any) -> PickerSettings:
        if not isinstance(data, dict):
            raise ValueError("Settings file must contain a JSON object")

        settings = PickerSettings()

        if "default_thumbnail_size" in data:
            size = parse_thumbnail_size(data["default_thumbnail_size"])
            if size is None:
                raise ValueError(
                    f"Invalid default_thumbnail_size: {data['default_thumbnail_size']!r}"
                )
            settings.default_thumbnail_size = size

        if "update_period_ms" in data:
            period = data["update_period_ms"]
            if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
                raise ValueError(f"Invalid update_period_ms: {period!r}")
            settings.update_period_ms = period

        if "skip_untitled_windows" in data:
            skip = data["skip_untitled_windows"]
            if not isinstance(skip, bool):
                raise ValueError(f"Invalid skip_untitled_windows: {skip!r}")
            settings.skip_untitled_windows = skip

        return settings
