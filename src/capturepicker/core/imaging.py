"""Bitmap helpers for thumbnails.

Raw capturer output is an RGB ``numpy`` array of arbitrary size. Thumbnails
are scaled with Pillow, preserving aspect ratio, and centered on a black
canvas of exactly the requested size.
"""

from __future__ import annotations

import logging

import numpy as np
from PIL import Image
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage

from capturepicker.core.models import Resolution

logger = logging.getLogger(__name__)


def blank_thumbnail(size: Resolution) -> np.ndarray:
    """Create a black RGB bitmap of the given size."""
    return np.zeros((size.height, size.width, 3), dtype=np.uint8)


def scale_to_thumbnail(image: np.ndarray, size: Resolution) -> np.ndarray:
    """Scale an RGB bitmap to fit ``size`` and letterbox it.

    Args:
        image: Source bitmap (H x W x 3, uint8)
        size: Exact output size

    Returns:
        RGB bitmap of exactly ``size``
    """
    height, width = image.shape[:2]
    if (width, height) == size.to_tuple():
        return image
    if width <= 0 or height <= 0:
        return blank_thumbnail(size)

    scale = min(size.width / width, size.height / height)
    scaled_width = max(1, round(width * scale))
    scaled_height = max(1, round(height * scale))

    scaled = Image.fromarray(image[:, :, :3]).resize(
        (scaled_width, scaled_height), Image.Resampling.LANCZOS
    )
    canvas = Image.new("RGB", size.to_tuple())
    canvas.paste(scaled, ((size.width - scaled_width) // 2, (size.height - scaled_height) // 2))
    return np.asarray(canvas, dtype=np.uint8)


def to_qimage(image: np.ndarray) -> QImage:
    """Convert an RGB bitmap to a QImage that owns its pixel data."""
    # Ensure array is C-contiguous (required by QImage)
    if not image.flags["C_CONTIGUOUS"]:
        image = np.ascontiguousarray(image)

    height, width, channels = image.shape
    q_image = QImage(
        image.data,
        width,
        height,
        channels * width,
        QImage.Format.Format_RGB888,
    )
    # QImage only borrows the buffer; detach it from the numpy array
    return q_image.copy()


def qimage_to_png(image: QImage) -> bytes:
    """Encode a QImage as PNG bytes."""
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(data.data())


def thumbnail_digest(image: np.ndarray) -> int:
    """Cheap change detector for thumbnail pixels."""
    return hash(image.tobytes())
