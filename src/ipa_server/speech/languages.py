"""
Language Resolution.

Clients copy transcriptions from Wikipedia's "Help:IPA/<language>" pages
and send the language name as it is labeled there ("Standard German",
"Hindi and Urdu", ...). Those labels do not line up with Polly's naming,
so the mapping to Polly language codes is curated by hand rather than
derived from the provider's catalog.

A language name maps to exactly one Polly code. Where a language has
several dialects in Polly, one canonical code is picked; speaker
selection later widens it again to every voice sharing the same
two-letter generic key (so "Standard German" -> de-AT -> "de" also
reaches de-DE voices).
"""
from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping

from ipa_server.core.errors import UnsupportedLanguageError

# Wikipedia IPA help page name -> Polly LanguageCode
LANGUAGE_TO_CODE: Mapping[str, str] = MappingProxyType({
    "Arabic": "arb",
    "Catalan": "ca-ES",
    "Mandarin": "cmn-CN",
    "Welsh": "cy-GB",
    "Danish": "da-DK",
    "Standard German": "de-AT",
    "English": "en-US",
    "Spanish": "es-ES",
    "French": "fr-CA",
    "Hindi and Urdu": "hi-IN",
    "Icelandic": "is-IS",
    "Italian": "it-IT",
    "Japanese": "ja-JP",
    "Korean": "ko-KR",
    "Norwegian": "nb-NO",
    "Dutch": "nl-NL",
    "Polish": "pl-PL",
    "Portuguese": "pt-BR",
    "Romanian": "ro-RO",
    "Russian": "ru-RU",
    "Swedish": "sv-SE",
    "Turkish": "tr-TR",
})


def generic_language_from_code(code: str) -> str:
    """
    Reduce a provider language code to its two-character generic key.

    Examples:
        >>> generic_language_from_code("en-GB")
        'en'
        >>> generic_language_from_code("arb")
        'ar'

    Raises:
        ValueError: If the code is shorter than two characters.
    """
    if len(code) < 2:
        raise ValueError(f"language code too short for a generic key: {code!r}")
    return code[:2]


def resolve_language(name: str) -> str:
    """
    Map a language name to its generic language key.

    Names are matched exactly (case-sensitive), as the client sends the
    label verbatim.

    Raises:
        UnsupportedLanguageError: If the name is not in the table.
    """
    code = LANGUAGE_TO_CODE.get(name)
    if code is None:
        raise UnsupportedLanguageError(name)
    return generic_language_from_code(code)


def supported_languages() -> List[str]:
    """Language names accepted by resolve_language(), sorted."""
    return sorted(LANGUAGE_TO_CODE)
