"""
capturepicker CLI entry point.

Lists capturable screens and windows once, then prints them, saves their
thumbnails or lets the user pick one.
"""

import argparse
import json
import logging
import os
import re
import sys
from pathlib import Path
from typing import Optional

from capturepicker.core.logging import setup_logging
from capturepicker.core.models import CaptureResult, PickerSettings, Resolution
from capturepicker.core.version import __version__

APP_NAME = "capturepicker"
APP_DESCRIPTION = "List capturable screens and windows with thumbnails"

logger = logging.getLogger(__name__)


def parse_size(value: str) -> Resolution:
    """Parse a ``WIDTHxHEIGHT`` argument."""
    match = re.fullmatch(r"\s*(\d+)\s*[xX]\s*(\d+)\s*", value)
    if not match:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}")
    size = Resolution(int(match.group(1)), int(match.group(2)))
    if not size.is_positive:
        raise argparse.ArgumentTypeError(f"Thumbnail size must be positive, got {value!r}")
    return size


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=f"{APP_NAME} - {APP_DESCRIPTION}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List screens and windows
  python -m capturepicker

  # List screens only, as JSON with 64x64 thumbnails
  python -m capturepicker --types screen --thumbnail-size 64x64 --json

  # Save thumbnails and choose a source in a dialog
  python -m capturepicker --output-dir thumbs --pick
        """,
    )

    parser.add_argument(
        "--types",
        nargs="+",
        default=["screen", "window"],
        metavar="TYPE",
        help="Source types to list: 'screen', 'window' (default: both)",
    )

    parser.add_argument(
        "--thumbnail-size",
        type=parse_size,
        metavar="WxH",
        help="Thumbnail size, e.g. 64x64 (default: from settings, 150x150)",
    )

    parser.add_argument("--config", type=str, metavar="PATH", help="Path to settings file")

    parser.add_argument(
        "--output-dir", type=str, metavar="DIR", help="Write each thumbnail to DIR as PNG"
    )

    parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    parser.add_argument(
        "--pick", action="store_true", help="Show a picker dialog and print the chosen source id"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        metavar="LEVEL",
        help="Logging level (default: WARNING)",
    )

    parser.add_argument("--version", action="version", version=f"{APP_NAME} {__version__}")

    return parser


def load_settings(config: Optional[str]) -> Optional[PickerSettings]:
    """Load settings from ``config`` or the default location.

    Returns:
        Settings, or None if an explicit config file does not exist
    """
    from capturepicker.core.settings import SettingsManager

    if config is None:
        return SettingsManager().load_settings()

    config_path = Path(config)
    if not config_path.exists():
        logger.error(f"Configuration file not found: {config_path}")
        return None
    logger.info(f"Loading configuration from: {config_path}")
    return SettingsManager(config_dir=config_path.parent).load_settings(config_path)


def list_sources(app, capturer, options: dict) -> CaptureResult:
    """Run one listing session to completion on the Qt event loop."""
    results: list[CaptureResult] = []

    def on_finished(error_message: str, sources: list) -> None:
        results.append(CaptureResult(error_message=error_message, sources=tuple(sources)))
        app.quit()

    capturer.handling_finished.connect(on_finished)
    capturer.start_handling(options)

    # Invalid options finish before the event loop is needed
    if not results:
        app.exec()

    capturer.handling_finished.disconnect(on_finished)
    return results[0]


def save_thumbnails(result: CaptureResult, output_dir: Path) -> list[Path]:
    """Write every thumbnail of ``result`` into ``output_dir`` as PNG."""
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for position, record in enumerate(result.sources):
        safe_id = re.sub(r"[^A-Za-z0-9_.-]", "_", record.id)
        path = output_dir / f"{position:02d}_{safe_id}.png"
        if not record.thumbnail.save(str(path), "PNG"):
            raise IOError(f"Failed to write thumbnail: {path}")
        paths.append(path)
    logger.info(f"Saved {len(paths)} thumbnail(s) to {output_dir}")
    return paths


def print_result(result: CaptureResult, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    for record in result.sources:
        print(f"{record.id}\t{record.name}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the capturepicker CLI.

    Returns:
        Exit code using os.EX_* constants:
        - os.EX_OK (0): Success
        - os.EX_USAGE (64): The request was rejected
        - os.EX_NOINPUT (66): Cannot open configuration file
        - os.EX_CONFIG (78): Configuration file is invalid
        - os.EX_SOFTWARE (70): Internal software error
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    setup_logging(log_level=args.log_level)
    logger.debug(f"Command-line arguments: {args}")

    try:
        try:
            settings = load_settings(args.config)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return os.EX_CONFIG
        if settings is None:
            return os.EX_NOINPUT

        from PySide6.QtWidgets import QApplication

        from capturepicker.core.capture import DesktopCapturer

        app = QApplication.instance() or QApplication(sys.argv[:1])
        app.setApplicationName(APP_NAME)
        app.setApplicationVersion(__version__)

        options: dict = {"types": args.types}
        if args.thumbnail_size is not None:
            options["thumbnailSize"] = {
                "width": args.thumbnail_size.width,
                "height": args.thumbnail_size.height,
            }

        capturer = DesktopCapturer(settings)
        result = list_sources(app, capturer, options)

        if not result.succeeded:
            print(f"Error: {result.error_message}", file=sys.stderr)
            return os.EX_USAGE

        print_result(result, args.json)

        if args.output_dir:
            save_thumbnails(result, Path(args.output_dir))

        if args.pick:
            from capturepicker.desktop.dialogs import SourcePickerDialog

            dialog = SourcePickerDialog(result)
            if dialog.exec() and dialog.selected_source_id():
                print(dialog.selected_source_id())

        return os.EX_OK

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return os.EX_OK

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return os.EX_SOFTWARE


if __name__ == "__main__":
    sys.exit(main())
