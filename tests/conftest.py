"""Shared fixtures: an in-memory speech provider and app factories."""
from __future__ import annotations

import io
from typing import Any, Dict, List, Optional, Tuple

import pytest

from ipa_server.core.config import Settings
from ipa_server.speech.provider import ProviderError, SpeechProvider, SynthesizedAudio, VoiceDescription

# Small Polly-like catalog: English has three standard voices, Hindi one
# (bilingual Aditi), German and Arabic one each. Ruth is neural-only.
CATALOG = [
    VoiceDescription("Joanna", "en-US", (), ("neural", "standard")),
    VoiceDescription("Brian", "en-GB", (), ("standard",)),
    VoiceDescription("Aditi", "en-IN", ("hi-IN",), ("standard",)),
    VoiceDescription("Hans", "de-DE", (), ("standard",)),
    VoiceDescription("Zeina", "arb", (), ("standard",)),
    VoiceDescription("Ruth", "en-US", (), ("neural",)),
]

FAKE_AUDIO = b"OggS" + bytes(range(256)) * 20


class FakeProvider(SpeechProvider):
    """SpeechProvider serving a fixed catalog and canned audio."""
    name = "fake"

    def __init__(
        self,
        voices: Optional[List[VoiceDescription]] = None,
        audio: bytes = FAKE_AUDIO,
        fail_describe: bool = False,
        fail_synthesize: Optional[str] = None,
    ):
        self.voices = list(CATALOG if voices is None else voices)
        self.audio = audio
        self.fail_describe = fail_describe
        self.fail_synthesize = fail_synthesize
        self.describe_calls = 0
        self.calls: List[Tuple[str, str]] = []
        self.streams: List[io.BytesIO] = []

    def describe_voices(self) -> List[VoiceDescription]:
        self.describe_calls += 1
        if self.fail_describe:
            raise ProviderError("The security token included in the request is invalid.")
        return list(self.voices)

    def synthesize(self, ssml: str, voice_id: str) -> SynthesizedAudio:
        self.calls.append((ssml, voice_id))
        if self.fail_synthesize:
            raise ProviderError(self.fail_synthesize)
        stream = io.BytesIO(self.audio)
        self.streams.append(stream)
        return SynthesizedAudio(stream=stream, content_type="audio/ogg", voice_id=voice_id, chunk_size=1024)


def make_settings(**sections: Dict[str, Any]) -> Settings:
    """Settings with only the given sections set, e.g. make_settings(rate_limit={"per_hour": 3})."""
    return Settings(raw=dict(sections))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    for name in ("AWS_REGION", "IPA_SERVER_RATE_LIMIT", "IPA_SERVER_SETTINGS"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_client(fake_provider):
    """Factory for started TestClients; the inventory is built on entry."""
    from fastapi.testclient import TestClient
    from ipa_server.main import create_app

    clients = []

    def _make(settings: Optional[Settings] = None, provider: Optional[SpeechProvider] = None):
        app = create_app(settings=settings or make_settings(), provider=provider or fake_provider)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
