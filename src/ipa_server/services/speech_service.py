"""
SpeechService - IPA Synthesis Pipeline.

This module provides the SpeechService class which handles every
synthesis request, from the HTTP endpoint and the CLI alike.

Architecture:
    Validate length -> Resolve language -> Select speaker -> SSML -> Provider -> Stream

    Each step short-circuits on failure; nothing reaches the provider
    unless all checks before it pass.

Error Handling:
    - InvalidInputError: bad length, unsupported language, no speakers
    - SynthesisError: the provider call failed (message carries its text)

Example:
    >>> from ipa_server.services import SpeechService, SynthesizeRequest
    >>> service = SpeechService.from_settings(settings)   # builds the inventory
    >>> audio = service.synthesize(SynthesizeRequest(ipa="kæt", language="English"))
    >>> data = audio.read_all()
"""
from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ipa_server.core.config import ServiceConfig, Settings
from ipa_server.core.errors import (
    ErrorCode,
    InvalidInputError,
    NoSpeakersError,
    RateLimitedError,
    SpeechError,
    StartupError,
    SynthesisError,
    UnsupportedLanguageError,
)
from ipa_server.core.logging import error, get_logger, info, verbose
from ipa_server.core.metrics import metrics
from ipa_server.services.validators import validate_ipa
from ipa_server.speech.inventory import VoiceInventory, build_inventory
from ipa_server.speech.languages import resolve_language, supported_languages
from ipa_server.speech.provider import (
    ProviderError,
    SpeechProvider,
    SynthesizedAudio,
    build_ssml,
    get_provider,
)
from ipa_server.speech.selector import select_speaker

_LOG = get_logger("ipa-server.service")

__all__ = [
    "SpeechService",
    "SynthesizeRequest",
    "Resolution",
    "ErrorCode",
    "SpeechError",
    "InvalidInputError",
    "UnsupportedLanguageError",
    "NoSpeakersError",
    "RateLimitedError",
    "SynthesisError",
    "StartupError",
]


@dataclass
class SynthesizeRequest:
    """
    Request for IPA synthesis.

    Attributes:
        ipa: Transcription to speak (1-50 characters by default).
        language: Language name as labeled on Wikipedia's IPA help pages.
    """
    ipa: str
    language: str


@dataclass(frozen=True)
class Resolution:
    """Outcome of validation, language lookup and speaker selection."""
    ipa: str
    language: str
    key: str
    speaker: str


class SpeechService:
    """
    Synthesis request handler.

    Owns the provider client and the voice inventory. Both are created
    once (see from_settings) and then only read, so a single instance is
    shared by all concurrent requests.

    Usage:
        service = SpeechService(provider, inventory, config)
        audio = service.synthesize(SynthesizeRequest(ipa="kæt", language="English"))
        for chunk in audio.iter_bytes():
            ...
    """

    def __init__(
        self,
        provider: SpeechProvider,
        inventory: VoiceInventory,
        config: Optional[ServiceConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            provider: Synthesis backend.
            inventory: Voice inventory built from provider.describe_voices().
            config: Validated service configuration (defaults if omitted).
            rng: Fixed random source for speaker selection; a fresh one
                per request is used when omitted.
        """
        self._provider = provider
        self._inventory = inventory
        self._config = config or ServiceConfig()
        self._rng = rng

    @classmethod
    def from_settings(cls, settings: Settings, provider: Optional[SpeechProvider] = None) -> "SpeechService":
        """
        Build the service and its voice inventory.

        This is the startup barrier: it returns only once the inventory is
        populated.

        Raises:
            StartupError: If the voice catalog cannot be fetched.
            ConfigValidationError: If the settings are invalid.
        """
        config = settings.get_service_config()
        if provider is None:
            provider = get_provider(config.provider)
        inventory = build_inventory(provider, engine=config.provider.engine)
        metrics.set_inventory(len(inventory), inventory.voice_count)
        return cls(provider, inventory, config)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def inventory(self) -> VoiceInventory:
        return self._inventory

    @property
    def provider(self) -> SpeechProvider:
        return self._provider

    @property
    def config(self) -> ServiceConfig:
        return self._config

    # =========================================================================
    # Pipeline
    # =========================================================================

    def resolve(self, request: SynthesizeRequest) -> Resolution:
        """
        Run the checks that precede synthesis.

        Raises:
            InvalidInputError: On the first failing check (length, language,
                speakers), in that order.
        """
        ipa = validate_ipa(
            request.ipa,
            min_length=self._config.ipa.min_length,
            max_length=self._config.ipa.max_length,
        )
        key = resolve_language(request.language)
        speaker = select_speaker(self._inventory, key, rng=self._rng, language=request.language)
        return Resolution(ipa=ipa, language=request.language, key=key, speaker=speaker)

    def synthesize(self, request: SynthesizeRequest, request_id: str = "-") -> SynthesizedAudio:
        """
        Validate, resolve and synthesize one request.

        Args:
            request: IPA and language name.
            request_id: Request id for tracing.

        Returns:
            SynthesizedAudio whose iter_bytes() relays the provider stream.

        Raises:
            InvalidInputError: Payload rejected; the provider is not called.
            SynthesisError: The provider call failed.
        """
        try:
            res = self.resolve(request)
        except InvalidInputError as e:
            verbose(_LOG, "request_rejected", reason=e.message)
            metrics.record_request("invalid_input")
            raise

        info(_LOG, "synthesizing", ipa=res.ipa, language=res.language, speaker=res.speaker)

        t0 = time.perf_counter()
        try:
            audio = self._provider.synthesize(build_ssml(res.ipa), res.speaker)
        except ProviderError as e:
            error(_LOG, "synthesis_failed", speaker=res.speaker, error=str(e))
            metrics.record_request("synthesis_failed")
            raise SynthesisError(
                f"Failed to synthesize speech: {e}",
                {"speaker": res.speaker, "request_id": request_id},
            ) from e

        seconds = time.perf_counter() - t0
        verbose(_LOG, "synthesis_started", speaker=res.speaker, seconds=round(seconds, 3))
        metrics.record_request("success", duration=seconds)
        return audio

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_health_info(self) -> Dict[str, Any]:
        """Inventory summary for the /health endpoint."""
        return {
            "ok": True,
            "provider": self._provider.name,
            "engine": self._config.provider.engine,
            "languages": len(self._inventory),
            "voices": self._inventory.voice_count,
            "supported_languages": [
                name for name in supported_languages()
                if self._inventory.speakers(resolve_language(name))
            ],
        }
