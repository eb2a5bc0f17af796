"""
API Request/Response Schemas.

Models:
    SpeakRequest: Input schema for POST /
    ErrorResponse: JSON error body (documentation only)

Length bounds on the transcription are enforced by the service, not
here; violations come back as a 400 whose message states the bound.

Example Request:
    {
        "ipa": "kæt",
        "language": "English"
    }
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class SpeakRequest(BaseModel):
    """
    Synthesis request.

    Attributes:
        ipa: IPA transcription to speak, 1-50 characters.
        language: Language name exactly as labeled on Wikipedia's
            "Help:IPA" pages (e.g. "English", "Standard German").
    """
    ipa: str = Field(
        ...,
        description="IPA transcription (1-50 characters)",
    )
    language: str = Field(
        ...,
        description="Language name, e.g. 'English' or 'Hindi and Urdu'",
    )


class ErrorResponse(BaseModel):
    """
    Error body returned with 400 and 429 responses.

    Example Response:
        {
            "ok": false,
            "error": "INVALID_INPUT",
            "message": "Language Klingon is unsupported"
        }
    """
    ok: bool = False
    error: str
    message: str
