"""
Tests for input validation.

Tests cover:
- validate_ipa() - inclusive bounds, empty input, unicode counting
- Error message and details
"""
import pytest

from ipa_server.core.errors import ErrorCode, InvalidInputError
from ipa_server.services.validators import validate_ipa


class TestValidateIPA:
    """Tests for validate_ipa() function."""

    def test_valid_ipa_returned_unchanged(self):
        """Valid transcriptions come back unchanged."""
        assert validate_ipa("kæt") == "kæt"

    def test_whitespace_preserved(self):
        """Spaces inside the transcription are kept as sent."""
        assert validate_ipa(" ˈhɛl oʊ ") == " ˈhɛl oʊ "

    def test_empty_rejected(self):
        """Empty input fails the lower bound with INVALID_INPUT."""
        with pytest.raises(InvalidInputError) as exc_info:
            validate_ipa("")
        assert exc_info.value.message == "IPA must be between 1 and 50 characters"
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    def test_lower_bound_inclusive(self):
        """A single character is accepted."""
        assert validate_ipa("a") == "a"

    def test_upper_bound_inclusive(self):
        """Exactly 50 characters is accepted."""
        assert validate_ipa("a" * 50) == "a" * 50

    def test_too_long_rejected(self):
        """51 characters is rejected and the length reported."""
        with pytest.raises(InvalidInputError) as exc_info:
            validate_ipa("a" * 51)
        assert exc_info.value.details["length"] == 51

    def test_length_counted_in_characters(self):
        """50 two-byte IPA symbols are still 50 characters."""
        text = "ʃ" * 50
        assert len(text.encode("utf-8")) == 100
        assert validate_ipa(text) == text

    def test_custom_bounds(self):
        """Bounds passed in appear in the message."""
        with pytest.raises(InvalidInputError) as exc_info:
            validate_ipa("abcdef", min_length=2, max_length=5)
        assert exc_info.value.message == "IPA must be between 2 and 5 characters"
