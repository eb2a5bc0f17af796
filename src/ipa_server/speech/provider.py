"""
Speech Provider Boundary.

This module provides:
    - SpeechProvider: Base class for synthesis backends
    - PollyProvider: Amazon Polly implementation (boto3)
    - VoiceDescription: Provider-neutral voice catalog entry
    - SynthesizedAudio: Audio stream returned by a provider
    - build_ssml(): Wraps IPA into a Polly phoneme tag

The core only needs two things from a provider:
    1. describe_voices(): the full voice catalog, called once at startup
    2. synthesize(ssml, voice_id): an audio byte stream, called per request

Implementing a New Provider:
    1. Inherit from SpeechProvider
    2. Implement describe_voices() and synthesize()
    3. Raise ProviderError for any backend failure
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, BinaryIO, Iterator, List, Optional, Tuple
from xml.sax.saxutils import escape

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ipa_server.core.config import ProviderConfig
from ipa_server.core.logging import debug, get_logger, verbose

_LOG = get_logger("ipa-server.provider")

# Polly OutputFormat -> response media type
CONTENT_TYPES = {
    "ogg_vorbis": "audio/ogg",
    "mp3": "audio/mpeg",
    "pcm": "audio/pcm",
}

# Attribute metacharacters; escaping keeps the parsed ph value identical
_ATTR_ENTITIES = {"'": "&apos;", '"': "&quot;"}


class ProviderError(Exception):
    """Raised by a provider when the backend call fails."""
    pass


@dataclass(frozen=True)
class VoiceDescription:
    """
    One entry of the provider's voice catalog.

    Attributes:
        voice_id: Provider voice identifier (e.g. "Joanna").
        language_code: Primary language code (e.g. "en-US").
        additional_language_codes: Extra codes for bilingual voices.
        supported_engines: Engine tiers the voice supports ("standard", "neural", ...).
    """
    voice_id: str
    language_code: str
    additional_language_codes: Tuple[str, ...] = ()
    supported_engines: Tuple[str, ...] = ()

    @property
    def language_codes(self) -> Tuple[str, ...]:
        """Primary code followed by any additional codes."""
        return (self.language_code, *self.additional_language_codes)

    def supports_engine(self, engine: str) -> bool:
        wanted = engine.lower()
        return any(e.lower() == wanted for e in self.supported_engines)


@dataclass
class SynthesizedAudio:
    """
    Audio stream returned by a provider.

    The stream is relayed in one pass with iter_bytes(); it is never
    buffered whole. The underlying stream is closed once iteration ends,
    whether exhausted, failed or abandoned by a disconnecting client.

    Attributes:
        stream: File-like object with read(n) and close().
        content_type: Media type of the audio.
        voice_id: Voice that produced the audio.
        chunk_size: Bytes per yielded chunk.
    """
    stream: BinaryIO
    content_type: str
    voice_id: str
    chunk_size: int = 4096
    _closed: bool = field(default=False, init=False, repr=False)

    def iter_bytes(self) -> Iterator[bytes]:
        """Yield audio chunks until the provider stream is exhausted."""
        try:
            while True:
                chunk = self.stream.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            self.close()

    def read_all(self) -> bytes:
        """Read the whole stream (CLI use; the HTTP path streams)."""
        return b"".join(self.iter_bytes())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.stream.close()

    @property
    def closed(self) -> bool:
        return self._closed


def build_ssml(ipa: str) -> str:
    """
    Wrap an IPA transcription into a Polly phoneme tag.

    XML attribute metacharacters are escaped so the transcription cannot
    leave the ph attribute; Polly's XML parser restores them, so the
    phonemes it receives are exactly the ones submitted.

    Example:
        >>> build_ssml("kæt")
        "<phoneme alphabet='ipa' ph='kæt'></phoneme>"
    """
    return f"<phoneme alphabet='ipa' ph='{escape(ipa, _ATTR_ENTITIES)}'></phoneme>"


class SpeechProvider:
    """
    Base class for speech synthesis backends.

    Subclasses implement:
        - describe_voices(): List every voice in the catalog
        - synthesize(): Turn SSML into an audio stream
    """
    name: str = "base"

    def describe_voices(self) -> List[VoiceDescription]:
        """
        Return the full voice catalog.

        Raises:
            ProviderError: If the catalog cannot be fetched.
        """
        raise NotImplementedError

    def synthesize(self, ssml: str, voice_id: str) -> SynthesizedAudio:
        """
        Synthesize SSML with the given voice.

        Raises:
            ProviderError: If synthesis fails.
        """
        raise NotImplementedError


class PollyProvider(SpeechProvider):
    """
    Amazon Polly backend.

    Credentials come from the standard boto3 chain. Timeouts and retry
    attempts come from ProviderConfig, so a hung Polly call cannot hold
    a worker thread forever.
    """
    name = "polly"

    def __init__(self, config: Optional[ProviderConfig] = None, client: Any = None):
        """
        Args:
            config: Provider configuration (region, engine, format, timeouts).
            client: Pre-built boto3 Polly client (tests, custom sessions).
        """
        self.config = config or ProviderConfig()
        if client is None:
            client = boto3.client(
                "polly",
                region_name=self.config.region,
                config=Config(
                    connect_timeout=self.config.connect_timeout_s,
                    read_timeout=self.config.read_timeout_s,
                    retries={"max_attempts": self.config.max_attempts, "mode": "standard"},
                ),
            )
        self._client = client

    def describe_voices(self) -> List[VoiceDescription]:
        voices: List[VoiceDescription] = []
        kwargs: dict = {"IncludeAdditionalLanguageCodes": True}

        try:
            while True:
                resp = self._client.describe_voices(**kwargs)
                for v in resp.get("Voices", []):
                    voices.append(VoiceDescription(
                        voice_id=v["Id"],
                        language_code=v.get("LanguageCode", ""),
                        additional_language_codes=tuple(v.get("AdditionalLanguageCodes") or ()),
                        supported_engines=tuple(v.get("SupportedEngines") or ()),
                    ))
                token = resp.get("NextToken")
                if not token:
                    break
                kwargs["NextToken"] = token
        except (BotoCoreError, ClientError) as e:
            raise ProviderError(str(e)) from e

        verbose(_LOG, "polly_voices_described", count=len(voices), region=self.config.region)
        return voices

    def synthesize(self, ssml: str, voice_id: str) -> SynthesizedAudio:
        debug(_LOG, "polly_synthesize", voice=voice_id, output_format=self.config.output_format)
        try:
            resp = self._client.synthesize_speech(
                Engine=self.config.engine,
                OutputFormat=self.config.output_format,
                Text=ssml,
                TextType="ssml",
                VoiceId=voice_id,
            )
        except (BotoCoreError, ClientError) as e:
            raise ProviderError(str(e)) from e

        return SynthesizedAudio(
            stream=resp["AudioStream"],
            content_type=resp.get("ContentType") or CONTENT_TYPES.get(self.config.output_format, "application/octet-stream"),
            voice_id=voice_id,
            chunk_size=self.config.chunk_size,
        )


def get_provider(config: ProviderConfig) -> SpeechProvider:
    """Create the configured provider (Polly is the only backend)."""
    return PollyProvider(config)
