"""
FastAPI Dependency Injection Providers.

Architecture:
    1. get_settings() - Loads and caches application configuration
    2. get_speech_service() - Returns the SpeechService built at startup
    3. enforce_rate_limit() - Admits or rejects the caller before the handler

Lifecycle:
    1. Application startup (main.py lifespan)
       └── SpeechService.from_settings() builds the voice inventory
           └── stored on app.state.speech_service

    2. Request handling
       └── enforce_rate_limit() runs first (429 on rejection)
       └── Route handler receives the shared SpeechService via Depends()
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Request

from ipa_server.core.config import Settings, load_settings_or_defaults
from ipa_server.core.errors import RateLimitedError
from ipa_server.core.metrics import metrics
from ipa_server.core.rate_limit import RateLimitDecision, RateLimiter
from ipa_server.services.speech_service import SpeechService


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Reads IPA_SERVER_SETTINGS (default config/settings.yaml); when the file
    is absent, built-in defaults apply. Settings are immutable once loaded.
    """
    return load_settings_or_defaults()


def get_speech_service(request: Request) -> SpeechService:
    """Get the SpeechService created during startup."""
    return request.app.state.speech_service


def get_rate_limiter(request: Request) -> Optional[RateLimiter]:
    """Get the app's rate limiter (None when rate limiting is disabled)."""
    return getattr(request.app.state, "rate_limiter", None)


def client_identity(request: Request, ip_header: str = "") -> str:
    """
    Identify the caller for rate limiting.

    Behind a reverse proxy the socket peer is the proxy itself, so the
    proxy-set header (X-Real-IP by default) wins when present.
    """
    if ip_header:
        value = request.headers.get(ip_header)
        if value:
            return value.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


def enforce_rate_limit(request: Request) -> Optional[RateLimitDecision]:
    """
    Count the request against the caller's quota.

    Returns:
        The admission decision (its headers go on the response), or None
        when rate limiting is disabled.

    Raises:
        RateLimitedError: The quota is exhausted; the handler never runs.
    """
    limiter = get_rate_limiter(request)
    if limiter is None:
        return None

    config = request.app.state.config
    decision = limiter.check(client_identity(request, config.rate_limit.ip_header))
    if not decision.allowed:
        metrics.record_rate_limited()
        headers = decision.headers()
        raise RateLimitedError(
            f"Rate limit of {decision.limit} requests exceeded, retry in {headers['Retry-After']} seconds",
            headers=headers,
        )
    return decision
