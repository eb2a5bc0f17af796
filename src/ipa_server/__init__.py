"""
ipa-server: Speak IPA transcriptions through Amazon Polly.

A small HTTP service that takes a phonetic transcription written in the
International Phonetic Alphabet plus a human-readable language name (as
labeled on Wikipedia's IPA help pages) and returns spoken audio.

Pipeline:
    Rate limit -> Validate -> Resolve language -> Pick speaker -> Polly -> Stream

Key Features:
    - Voice inventory discovered from Polly once at startup
    - Random speaker per request among the voices of a language
    - Per-client hourly rate limiting
    - Permissive CORS with browser-extension origin echoing
    - Prometheus metrics and structured logging

Example Usage:
    >>> import requests
    >>> r = requests.post(
    ...     "http://localhost:8000/",
    ...     json={"ipa": "kæt", "language": "English"},
    ... )
    >>> with open("cat.ogg", "wb") as f:
    ...     f.write(r.content)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
