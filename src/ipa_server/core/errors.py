"""
Error Codes and Exceptions.

Every failure a client can see is a SpeechError carrying a stable code,
which the API layer turns into a JSON body and an HTTP status:

    INVALID_INPUT     -> 400  bad IPA length, unknown language, no voices
    SYNTHESIS_FAILED  -> 400  provider rejected or failed the request
    RATE_LIMITED      -> 429  hourly quota exhausted
    anything else     -> 500

StartupError is never sent to clients: it aborts the process when the
voice inventory cannot be built.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """Standardized error codes for API responses."""
    INVALID_INPUT = "INVALID_INPUT"         # Client-caused, never retried
    RATE_LIMITED = "RATE_LIMITED"           # Quota exhausted for this window
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"   # Provider call failed
    STARTUP_FAILURE = "STARTUP_FAILURE"     # Voice catalog unavailable
    INTERNAL_ERROR = "INTERNAL_ERROR"       # Unexpected error


HTTP_STATUS = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.SYNTHESIS_FAILED: 400,
    ErrorCode.RATE_LIMITED: 429,
}


class SpeechError(Exception):
    """
    Base exception for ipa-server errors.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode.
        details: Optional dictionary with additional context.
    """
    def __init__(self, message: str, code: str = ErrorCode.INTERNAL_ERROR, details: Optional[Dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    @property
    def status_code(self) -> int:
        """HTTP status for this error."""
        return HTTP_STATUS.get(self.code, 500)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to standardized error response dict for API."""
        result = {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class InvalidInputError(SpeechError):
    """Raised when the request payload is rejected."""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.INVALID_INPUT, details)


class UnsupportedLanguageError(InvalidInputError):
    """Raised when a language name is not in the curated table."""
    def __init__(self, language: str):
        super().__init__(f"Language {language} is unsupported", {"language": language})
        self.language = language


class NoSpeakersError(InvalidInputError):
    """Raised when a language has no voices in the inventory."""
    def __init__(self, language: str, key: Optional[str] = None):
        details = {"language": language}
        if key is not None:
            details["key"] = key
        super().__init__(f"No speakers available for language {language}", details)
        self.language = language


class RateLimitedError(SpeechError):
    """Raised when a client exceeds its request quota."""
    def __init__(self, message: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(message, ErrorCode.RATE_LIMITED)
        self.headers = headers or {}


class SynthesisError(SpeechError):
    """Raised when the provider fails to synthesize speech."""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.SYNTHESIS_FAILED, details)


class StartupError(SpeechError):
    """Raised when the voice inventory cannot be built; fatal."""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.STARTUP_FAILURE, details)
