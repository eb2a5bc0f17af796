"""
Input Validation for the Speech Service.

Validation runs before any lookup or provider call so that bad requests
never cost a synthesis. The only check applied to the transcription is
its length; its phonetic content is not validated here (Polly reports
unparseable phonemes as a synthesis failure).

Usage:
    from ipa_server.services.validators import validate_ipa

    ipa = validate_ipa(request.ipa, min_length=1, max_length=50)
"""
from __future__ import annotations

from ipa_server.core.config import Defaults
from ipa_server.core.errors import InvalidInputError


def validate_ipa(
    ipa: str,
    min_length: int = Defaults.IPA_MIN_LENGTH,
    max_length: int = Defaults.IPA_MAX_LENGTH,
) -> str:
    """
    Check that a transcription is within [min_length, max_length] characters.

    The text is returned unchanged; whitespace is significant in IPA
    (word boundaries) and is not stripped.

    Raises:
        InvalidInputError: If the length is out of bounds.
    """
    if not (min_length <= len(ipa) <= max_length):
        raise InvalidInputError(
            f"IPA must be between {min_length} and {max_length} characters",
            {"length": len(ipa), "min_length": min_length, "max_length": max_length},
        )
    return ipa
