"""Unit tests for ResultEmitter."""

from unittest.mock import Mock

from capturepicker.core.capture.emitter import ResultEmitter
from capturepicker.core.models import CaptureResult


class TestResultEmitter:
    """Test one-shot terminal event delivery."""

    def test_emits_once(self):
        sink = Mock()
        emitter = ResultEmitter(sink, session_id=3)

        assert emitter.emit("", ["a"])
        assert not emitter.emit("", ["b"])
        assert not emitter.emit("Invalid options.", [])

        sink.assert_called_once_with("", ["a"])
        assert emitter.fired

    def test_failure_never_carries_sources(self):
        sink = Mock()
        ResultEmitter(sink).emit("boom", ["a", "b"])
        sink.assert_called_once_with("boom", [])

    def test_emit_result(self):
        sink = Mock()
        ResultEmitter(sink).emit_result(CaptureResult.failure("Invalid options."))
        sink.assert_called_once_with("Invalid options.", [])
