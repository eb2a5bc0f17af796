"""
Speaker Selection.

Each request gets a speaker drawn uniformly at random from the voices
registered under its generic language key. Draws are independent: no
session affinity and no avoidance of recently used voices. There is no
reproducibility requirement, so the default source is a fresh
random.Random() per call (seeded from the OS).
"""
from __future__ import annotations

import random
from typing import Optional

from ipa_server.core.errors import NoSpeakersError
from ipa_server.speech.inventory import VoiceInventory


def select_speaker(
    inventory: VoiceInventory,
    key: str,
    rng: Optional[random.Random] = None,
    language: Optional[str] = None,
) -> str:
    """
    Pick one speaker id for a generic language key.

    Args:
        inventory: Voice inventory built at startup.
        key: Generic language key (e.g. "en").
        rng: Random source; a fresh one is used when omitted.
        language: Language name, used only in the error message.

    Raises:
        NoSpeakersError: If the key has no registered speakers.
    """
    speakers = inventory.speakers(key)
    if not speakers:
        raise NoSpeakersError(language or key, key)
    return (rng or random.Random()).choice(speakers)
