"""Unit tests for request validation."""

import pytest

from capturepicker.core.capture.validator import (
    INVALID_OPTIONS_MESSAGE,
    InvalidConfigurationError,
    parse_source_types,
    parse_thumbnail_size,
    validate_request,
)
from capturepicker.core.models import DEFAULT_THUMBNAIL_SIZE, Resolution, SourceType


class TestParseSourceTypes:
    """Test collecting recognized source types."""

    def test_screen_and_window(self):
        assert parse_source_types(["screen", "window"]) == {SourceType.SCREEN, SourceType.WINDOW}

    def test_unrecognized_entries_are_ignored(self):
        assert parse_source_types(["tab", "window", 42, None]) == {SourceType.WINDOW}

    def test_duplicates_collapse(self):
        assert parse_source_types(["screen", "screen"]) == {SourceType.SCREEN}

    @pytest.mark.parametrize("value", [None, "screen", b"screen", 7, {"screen": True}])
    def test_malformed_field_yields_nothing(self, value):
        assert parse_source_types(value) == frozenset()


class TestParseThumbnailSize:
    """Test thumbnail size parsing."""

    def test_mapping(self):
        assert parse_thumbnail_size({"width": 64, "height": 48}) == Resolution(64, 48)

    def test_pair(self):
        assert parse_thumbnail_size((320, 240)) == Resolution(320, 240)

    def test_resolution(self):
        assert parse_thumbnail_size(Resolution(10, 20)) == Resolution(10, 20)

    @pytest.mark.parametrize(
        "value",
        [
            {"width": 0, "height": 64},
            {"width": 64, "height": -1},
            {"width": "64", "height": 64},
            {"width": 64},
            {"width": True, "height": 64},
            (64,),
            "64x64",
            None,
            {"width": 6.5, "height": 64},
        ],
    )
    def test_rejects_malformed(self, value):
        assert parse_thumbnail_size(value) is None


class TestValidateRequest:
    """Test validate_request."""

    def test_screen_request_uses_default_size(self):
        request = validate_request({"types": ["screen"]})

        assert request.types == {SourceType.SCREEN}
        assert request.wants_screens
        assert not request.wants_windows
        assert request.thumbnail_size == DEFAULT_THUMBNAIL_SIZE == Resolution(150, 150)

    def test_explicit_thumbnail_size_overrides_default(self):
        request = validate_request(
            {"types": ["window"], "thumbnailSize": {"width": 64, "height": 64}}
        )

        assert request.thumbnail_size == Resolution(64, 64)
        assert request.wants_windows

    def test_configured_default_size(self):
        request = validate_request({"types": ["screen"]}, default_thumbnail_size=Resolution(32, 24))
        assert request.thumbnail_size == Resolution(32, 24)

    def test_malformed_size_falls_back_to_default(self):
        request = validate_request({"types": ["screen"], "thumbnailSize": {"width": -5}})
        assert request.thumbnail_size == DEFAULT_THUMBNAIL_SIZE

    @pytest.mark.parametrize(
        "options",
        [
            {"types": ["tab"]},
            {"types": []},
            {},
            {"types": None},
            {"types": "screen"},
            {"types": ["Screen", "WINDOW"]},
            None,
            ["screen"],
        ],
    )
    def test_invalid_requests_raise(self, options):
        with pytest.raises(InvalidConfigurationError, match="Invalid options."):
            validate_request(options)

    def test_error_is_value_error_with_fixed_message(self):
        error = InvalidConfigurationError()
        assert isinstance(error, ValueError)
        assert str(error) == INVALID_OPTIONS_MESSAGE == "Invalid options."
