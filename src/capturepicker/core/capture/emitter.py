"""One-shot delivery of terminal events."""

from __future__ import annotations

import logging
from typing import Callable

from capturepicker.core.models import CaptureResult, SourceRecord

logger = logging.getLogger(__name__)

ResultSink = Callable[[str, list[SourceRecord]], None]


class ResultEmitter:
    """Delivers exactly one terminal event for one request.

    The sink receives ``(error_message, sources)``. Any emit after the first
    is logged and ignored.
    """

    def __init__(self, sink: ResultSink, session_id: int = 0):
        self._sink = sink
        self._session_id = session_id
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def emit(self, error_message: str, sources: list[SourceRecord]) -> bool:
        """Fire the terminal event.

        Args:
            error_message: Empty string on success
            sources: Source records, always empty on failure

        Returns:
            True if the event was delivered, False if one was already delivered
        """
        if self._fired:
            logger.warning(f"Session {self._session_id} already finished, ignoring second result")
            return False

        if error_message and sources:
            logger.warning(f"Session {self._session_id} failed, dropping {len(sources)} source(s)")
            sources = []

        self._fired = True
        logger.info(
            f"Session {self._session_id} finished: "
            f"{'error ' + repr(error_message) if error_message else 'ok'}, "
            f"{len(sources)} source(s)"
        )
        self._sink(error_message, list(sources))
        return True

    def emit_result(self, result: CaptureResult) -> bool:
        return self.emit(result.error_message, list(result.sources))
