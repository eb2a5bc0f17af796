"""
Voice Resolution for ipa-server.

    - languages.py: Curated language name -> Polly code table
    - provider.py: Provider boundary and Amazon Polly backend
    - inventory.py: Voice inventory built from the provider catalog
    - selector.py: Random speaker selection
"""
from .inventory import VoiceInventory, build_inventory, index_voices
from .languages import LANGUAGE_TO_CODE, generic_language_from_code, resolve_language, supported_languages
from .provider import (
    PollyProvider,
    ProviderError,
    SpeechProvider,
    SynthesizedAudio,
    VoiceDescription,
    build_ssml,
    get_provider,
)
from .selector import select_speaker

__all__ = [
    "LANGUAGE_TO_CODE",
    "generic_language_from_code",
    "resolve_language",
    "supported_languages",
    "VoiceInventory",
    "build_inventory",
    "index_voices",
    "select_speaker",
    "SpeechProvider",
    "PollyProvider",
    "ProviderError",
    "SynthesizedAudio",
    "VoiceDescription",
    "build_ssml",
    "get_provider",
]
