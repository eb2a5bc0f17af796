"""
ipa-server Services Layer.

This package provides the business logic that sits between the API
layer and the speech provider.

Components:
    - speech_service.py: SpeechService class (synthesis pipeline)
    - validators.py: Input validation functions
"""
from .speech_service import (
    ErrorCode,
    InvalidInputError,
    NoSpeakersError,
    RateLimitedError,
    Resolution,
    SpeechError,
    SpeechService,
    StartupError,
    SynthesisError,
    SynthesizeRequest,
    UnsupportedLanguageError,
)

__all__ = [
    "SpeechService",
    "SynthesizeRequest",
    "Resolution",
    "SpeechError",
    "InvalidInputError",
    "UnsupportedLanguageError",
    "NoSpeakersError",
    "RateLimitedError",
    "SynthesisError",
    "StartupError",
    "ErrorCode",
]
