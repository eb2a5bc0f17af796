"""
FastAPI Application Entry Point.

This module creates and configures the FastAPI application instance for
ipa-server. It sets up routing, logging, cross-origin headers, rate
limiting and the startup phase that builds the voice inventory.

Startup:
    The lifespan handler fetches Polly's voice catalog before the server
    accepts any connection. If that fails (missing credentials, wrong
    region) StartupError propagates and the server exits; there is no
    partial startup.

Usage:
    # Run with uvicorn
    uvicorn ipa_server.main:app --host 0.0.0.0 --port 8000

    # Or through the CLI
    ipa-server --serve --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ipa_server import __version__
from ipa_server.api.cors import CrossOriginMiddleware
from ipa_server.api.dependencies import get_settings
from ipa_server.api.routes import router
from ipa_server.core.config import Settings
from ipa_server.core.errors import InvalidInputError, SpeechError, StartupError
from ipa_server.core.logging import configure_logging, fail, get_logger, info
from ipa_server.core.rate_limit import RateLimiter
from ipa_server.services.speech_service import SpeechService
from ipa_server.speech.provider import SpeechProvider

_LOG = get_logger("ipa-server.main")


async def _speech_error_handler(request: Request, exc: SpeechError) -> JSONResponse:
    """Render SpeechErrors raised outside the route body (rate limiting)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=getattr(exc, "headers", None) or None,
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or incomplete request bodies are a 400, like every other input error."""
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    error = InvalidInputError("Invalid request body: " + "; ".join(problems))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[SpeechProvider] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to config/settings.yaml or
            IPA_SERVER_SETTINGS).
        provider: Speech provider (defaults to Amazon Polly). Tests pass an
            in-memory provider here.

    Returns:
        FastAPI: Configured application. The voice inventory is built when
        the app's lifespan starts, not here.

    Raises:
        ConfigValidationError: If the settings are invalid.
    """
    configure_logging()

    settings = settings or get_settings()
    config = settings.get_service_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        info(_LOG, "starting", version=__version__, region=config.provider.region)
        try:
            # describe_voices is a blocking boto3 call
            app.state.speech_service = await run_in_threadpool(
                SpeechService.from_settings, settings, provider
            )
        except StartupError as e:
            fail(_LOG, "startup_failed", error=e.message)
            raise
        yield
        info(_LOG, "shutdown")

    app = FastAPI(title="ipa-server", version=__version__, lifespan=lifespan)

    app.state.config = config
    app.state.rate_limiter = None
    if config.rate_limit.enabled:
        app.state.rate_limiter = RateLimiter(
            limit=config.rate_limit.per_hour,
            window_seconds=config.rate_limit.window_seconds,
            max_clients=config.rate_limit.max_clients,
        )

    app.add_middleware(
        CrossOriginMiddleware,
        trusted_origin_prefixes=config.cors.trusted_origin_prefixes,
    )
    app.add_exception_handler(SpeechError, _speech_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(router)

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
