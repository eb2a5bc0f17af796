"""Tests for random speaker selection."""
from __future__ import annotations

import random
from collections import Counter

import pytest

from ipa_server.core.errors import InvalidInputError, NoSpeakersError
from ipa_server.speech.inventory import VoiceInventory
from ipa_server.speech.selector import select_speaker


@pytest.fixture
def inventory():
    return VoiceInventory({"en": ["Joanna", "Brian", "Aditi"], "de": ["Hans"], "is": []})


class TestSelectSpeaker:
    """select_speaker() draws uniformly from a bucket."""

    def test_single_speaker(self, inventory):
        """A one-voice bucket always yields that voice."""
        assert select_speaker(inventory, "de") == "Hans"

    def test_result_is_in_bucket(self, inventory):
        """Every draw comes from the requested bucket."""
        for _ in range(50):
            assert select_speaker(inventory, "en") in {"Joanna", "Brian", "Aditi"}

    def test_missing_key(self, inventory):
        """An absent key raises NoSpeakersError naming the language."""
        with pytest.raises(NoSpeakersError) as exc_info:
            select_speaker(inventory, "cy", language="Welsh")
        assert exc_info.value.message == "No speakers available for language Welsh"
        assert isinstance(exc_info.value, InvalidInputError)

    def test_empty_bucket(self, inventory):
        """An empty bucket is treated like an absent key."""
        with pytest.raises(NoSpeakersError):
            select_speaker(inventory, "is", language="Icelandic")

    def test_message_falls_back_to_key(self, inventory):
        """Without a language name the key appears in the message."""
        with pytest.raises(NoSpeakersError) as exc_info:
            select_speaker(inventory, "cy")
        assert "cy" in exc_info.value.message

    def test_roughly_uniform(self, inventory):
        """Each of three speakers gets about a third of 3000 seeded draws."""
        rng = random.Random(1234)
        counts = Counter(select_speaker(inventory, "en", rng=rng) for _ in range(3000))
        assert set(counts) == {"Joanna", "Brian", "Aditi"}
        for n in counts.values():
            assert 800 < n < 1200

    def test_default_rng_reaches_every_speaker(self, inventory):
        """The OS-seeded default source reaches every voice."""
        seen = {select_speaker(inventory, "en") for _ in range(300)}
        assert seen == {"Joanna", "Brian", "Aditi"}
