"""Tests for custom error types."""

import pytest

from hazmat_common.errors import (
    ConfigurationError,
    ExtractionFailure,
    HazmatKBError,
    InferenceError,
    InputRejected,
    MalformedResponse,
    StorageError,
)


class TestErrorHierarchy:
    """Test error inheritance and hierarchy."""

    def test_all_errors_inherit_from_base(self):
        """Verify all custom errors inherit from HazmatKBError."""
        for error_type in (
            InputRejected,
            ExtractionFailure,
            InferenceError,
            MalformedResponse,
            ConfigurationError,
            StorageError,
        ):
            assert issubclass(error_type, HazmatKBError)

    def test_categories_distinguish_failure_phases(self):
        """Extraction and inference failures report different categories."""
        categories = {
            InputRejected.category,
            ExtractionFailure.category,
            InferenceError.category,
            MalformedResponse.category,
            ConfigurationError.category,
            StorageError.category,
        }

        assert len(categories) == 6
        assert ExtractionFailure.category == "extraction"
        assert InferenceError.category == "inference"
        assert MalformedResponse.category == "parse"

    def test_extraction_failure_carries_phase(self):
        """ExtractionFailure keeps the phase it failed in."""
        with pytest.raises(ExtractionFailure) as exc_info:
            raise ExtractionFailure("tesseract missing", phase="initializing")

        assert exc_info.value.phase == "initializing"
        assert str(exc_info.value) == "tesseract missing"

    def test_malformed_response_truncates_raw(self):
        """MalformedResponse keeps at most 500 chars of raw output."""
        error = MalformedResponse("no JSON", raw="x" * 2000)

        assert len(error.raw) == 500

    def test_error_messages_preserved(self):
        """Test error messages are preserved."""
        message = "Gemini API error: 403 PERMISSION_DENIED"

        try:
            raise InferenceError(message)
        except HazmatKBError as e:
            assert str(e) == message
