"""
Voice Inventory.

At startup the provider's voice catalog is fetched once and indexed by
generic language key (the first two characters of each language code):

    Polly catalog                          Inventory
    Joanna   en-US            standard  ->  "en": ("Joanna", "Brian", "Aditi")
    Brian    en-GB            standard      "hi": ("Aditi",)
    Aditi    en-IN + hi-IN    standard      ...
    Ruth     en-US            neural    ->  (skipped, no standard tier)

Rules:
    - Voices without the configured engine tier ("standard") are skipped.
    - A voice is registered under every distinct generic key of its
      primary and additional language codes, once per key.
    - Bucket order follows catalog order.

The inventory is immutable once built and is shared by every request
without locking. If the catalog cannot be fetched, StartupError is
raised and the server must not start.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple

from ipa_server.core.errors import StartupError
from ipa_server.core.logging import get_logger, success, verbose, warn
from ipa_server.speech.languages import generic_language_from_code
from ipa_server.speech.provider import ProviderError, SpeechProvider, VoiceDescription

_LOG = get_logger("ipa-server.inventory")


class VoiceInventory:
    """
    Read-only mapping of generic language key -> speaker ids.

    Example:
        >>> inv = VoiceInventory({"en": ["Joanna", "Brian"]})
        >>> inv.speakers("en")
        ('Joanna', 'Brian')
        >>> "de" in inv
        False
    """

    def __init__(self, buckets: Mapping[str, Iterable[str]]):
        self._buckets: Mapping[str, Tuple[str, ...]] = MappingProxyType(
            {key: tuple(ids) for key, ids in buckets.items()}
        )

    def speakers(self, key: str) -> Tuple[str, ...]:
        """Speaker ids for a generic key (empty tuple if unknown)."""
        return self._buckets.get(key, ())

    def keys(self) -> List[str]:
        return list(self._buckets)

    @property
    def voice_count(self) -> int:
        """Number of distinct voices across all buckets."""
        return len({v for ids in self._buckets.values() for v in ids})

    def as_dict(self) -> Dict[str, List[str]]:
        """Plain copy for JSON output."""
        return {key: list(ids) for key, ids in self._buckets.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._buckets

    def __iter__(self) -> Iterator[str]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __repr__(self) -> str:
        return f"VoiceInventory(languages={len(self)}, voices={self.voice_count})"


def index_voices(voices: Iterable[VoiceDescription], engine: str = "standard") -> VoiceInventory:
    """
    Index catalog entries by generic language key.

    Args:
        voices: Catalog entries, in provider order.
        engine: Engine tier a voice must support to be indexed.
    """
    buckets: Dict[str, List[str]] = {}
    skipped = 0

    for voice in voices:
        if not voice.supports_engine(engine):
            skipped += 1
            continue
        if not voice.language_code:
            warn(_LOG, "voice_without_language", voice=voice.voice_id)
            continue

        # dict.fromkeys dedupes while keeping order (en-US + en-IN -> "en" once)
        keys = dict.fromkeys(
            generic_language_from_code(code) for code in voice.language_codes if code
        )
        for key in keys:
            buckets.setdefault(key, []).append(voice.voice_id)

    verbose(_LOG, "voices_indexed", engine=engine, skipped=skipped)
    return VoiceInventory(buckets)


def build_inventory(provider: SpeechProvider, engine: str = "standard") -> VoiceInventory:
    """
    Fetch the provider catalog once and build the inventory.

    Raises:
        StartupError: If the catalog cannot be fetched (bad credentials,
            network, region). Not retried; fix the configuration and restart.
    """
    try:
        voices = provider.describe_voices()
    except ProviderError as e:
        raise StartupError(
            f"Failed to describe voices - please check AWS credentials: {e}",
            {"provider": provider.name},
        ) from e

    inventory = index_voices(voices, engine=engine)
    success(_LOG, "voice_inventory_built", languages=len(inventory), voices=inventory.voice_count)
    return inventory
