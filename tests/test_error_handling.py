"""
Tests for error classes and their HTTP mapping.

Tests cover:
- ErrorCode values
- SpeechError creation and serialization (to_dict)
- Status codes per error type
- Exception inheritance
"""
import pytest

from ipa_server.services.speech_service import (
    ErrorCode,
    InvalidInputError,
    NoSpeakersError,
    RateLimitedError,
    SpeechError,
    StartupError,
    SynthesisError,
    UnsupportedLanguageError,
)


class TestErrorCode:
    """Tests for ErrorCode constants."""

    @pytest.mark.parametrize("name", [
        "INVALID_INPUT", "RATE_LIMITED", "SYNTHESIS_FAILED", "STARTUP_FAILURE", "INTERNAL_ERROR",
    ])
    def test_code_equals_name(self, name):
        """Each code's value equals its name."""
        assert getattr(ErrorCode, name) == name


class TestSpeechError:
    """Tests for the SpeechError base exception."""

    def test_message(self):
        """The message is kept and used as str()."""
        error = SpeechError("Test error message")
        assert error.message == "Test error message"
        assert str(error) == "Test error message"

    def test_default_code_is_internal_error(self):
        """Without a code the error is INTERNAL_ERROR with status 500."""
        error = SpeechError("Test error")
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.status_code == 500

    def test_default_details_is_empty_dict(self):
        """details defaults to an empty dict."""
        assert SpeechError("Test error").details == {}

    def test_to_dict(self):
        """to_dict() gives the JSON error body."""
        error = SpeechError("boom", code=ErrorCode.SYNTHESIS_FAILED)
        assert error.to_dict() == {"ok": False, "error": "SYNTHESIS_FAILED", "message": "boom"}

    def test_to_dict_with_details(self):
        """Details are included when present."""
        error = SpeechError("boom", details={"speaker": "Joanna"})
        assert error.to_dict()["details"] == {"speaker": "Joanna"}


class TestSubclasses:
    """Status codes and hierarchy."""

    @pytest.mark.parametrize("error,status", [
        (InvalidInputError("bad"), 400),
        (UnsupportedLanguageError("Klingon"), 400),
        (NoSpeakersError("Welsh"), 400),
        (SynthesisError("Failed to synthesize speech: x"), 400),
        (RateLimitedError("slow down"), 429),
        (StartupError("no catalog"), 500),
    ])
    def test_status(self, error, status):
        """Each error type maps to its HTTP status."""
        assert error.status_code == status

    def test_language_errors_are_invalid_input(self):
        """Language errors are InvalidInputError subclasses."""
        assert isinstance(UnsupportedLanguageError("Klingon"), InvalidInputError)
        assert isinstance(NoSpeakersError("Welsh"), InvalidInputError)

    def test_all_inherit_speech_error(self):
        """Every error derives from SpeechError."""
        for cls in (InvalidInputError, SynthesisError, RateLimitedError, StartupError):
            assert issubclass(cls, SpeechError)

    def test_no_speakers_details(self):
        """NoSpeakersError records language and key."""
        error = NoSpeakersError("Welsh", key="cy")
        assert error.details == {"language": "Welsh", "key": "cy"}

    def test_rate_limited_headers(self):
        """RateLimitedError carries response headers."""
        error = RateLimitedError("slow down", headers={"Retry-After": "10"})
        assert error.headers == {"Retry-After": "10"}
        assert RateLimitedError("slow down").headers == {}
