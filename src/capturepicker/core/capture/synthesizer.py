"""Conversion of a finalized source list into a CaptureResult."""

from __future__ import annotations

import logging
from typing import Iterable

from capturepicker.core.imaging import scale_to_thumbnail, to_qimage
from capturepicker.core.models import CaptureResult, Resolution, Source, SourceRecord

logger = logging.getLogger(__name__)


def to_record(source: Source, thumbnail_size: Resolution) -> SourceRecord:
    """Convert one source into a result record with a QImage thumbnail."""
    bitmap = scale_to_thumbnail(source.thumbnail, thumbnail_size)
    return SourceRecord(name=str(source.name), id=str(source.id), thumbnail=to_qimage(bitmap))


def synthesize(sources: Iterable[Source], thumbnail_size: Resolution) -> CaptureResult:
    """Build a successful result from sources in list order.

    Sources are neither sorted, deduplicated nor filtered.

    Args:
        sources: Sources in their final order
        thumbnail_size: Exact size of every thumbnail in the result

    Returns:
        CaptureResult with an empty error message
    """
    records = tuple(to_record(source, thumbnail_size) for source in sources)
    logger.debug(f"Synthesized result with {len(records)} source(s) at {thumbnail_size}")
    return CaptureResult(error_message="", sources=records)
