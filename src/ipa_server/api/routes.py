"""
HTTP Routes.

Endpoints:
    GET     /          - Plain-text hint
    POST    /          - Synthesize IPA (streams audio/ogg)
    OPTIONS /{path}    - CORS preflight, empty body
    GET     /health    - Voice inventory summary
    GET     /metrics   - Prometheus metrics

Request Flow (POST /):
    1. Rate limit admission (dependency; 429 before anything else)
    2. Generate request ID for tracing
    3. SpeechService.synthesize(): validate -> resolve -> select -> Polly
    4. Stream the provider's audio back

Error Handling:
    Errors are returned as JSON:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>"
    }

    INVALID_INPUT -> 400, SYNTHESIS_FAILED -> 400, RATE_LIMITED -> 429

Example Usage:
    curl -X POST http://localhost:8000/ \\
        -H "Content-Type: application/json" \\
        -d '{"ipa": "kæt", "language": "English"}' \\
        --output cat.ogg
"""
from __future__ import annotations

import uuid
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from ipa_server.api.dependencies import enforce_rate_limit, get_rate_limiter, get_speech_service
from ipa_server.api.schemas import ErrorResponse, SpeakRequest
from ipa_server.core.errors import ErrorCode, SpeechError
from ipa_server.core.logging import exception, get_logger, set_request_id
from ipa_server.core.metrics import metrics
from ipa_server.core.rate_limit import RateLimitDecision
from ipa_server.services.speech_service import SpeechService, SynthesizeRequest

router = APIRouter()

_LOG = get_logger("ipa-server.api")

INDEX_HINT = "This is an ipa_server, running on FastAPI (Python). You probably meant to do a POST request"


def _error_response(error: SpeechError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """Standardized JSON error response for a SpeechError."""
    return JSONResponse(status_code=error.status_code, content=error.to_dict(), headers=headers)


@router.get("/", response_class=PlainTextResponse)
def index() -> str:
    return INDEX_HINT


@router.post(
    "/",
    response_class=StreamingResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
def speak(
    req: SpeakRequest,
    limit: Optional[RateLimitDecision] = Depends(enforce_rate_limit),
    service: SpeechService = Depends(get_speech_service),
):
    """
    Speak an IPA transcription.

    Returns:
        StreamingResponse with the provider's audio and headers:
            - X-Request-Id: Request identifier for tracing
            - X-Speaker: Voice that was picked
            - X-RateLimit-*: Remaining quota for the caller
    """
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)

    headers = {"X-Request-Id": rid}
    if limit is not None:
        headers.update(limit.headers())

    try:
        audio = service.synthesize(SynthesizeRequest(ipa=req.ipa, language=req.language), rid)
    except SpeechError as e:
        return _error_response(e, headers)
    except Exception:
        exception(_LOG, "unexpected_error")
        metrics.record_request("internal_error")
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error": ErrorCode.INTERNAL_ERROR,
                "message": "Internal server error",
                "request_id": rid,
            },
            headers=headers,
        )

    headers["X-Speaker"] = audio.voice_id
    return StreamingResponse(audio.iter_bytes(), media_type=audio.content_type, headers=headers)


@router.options("/{rest_of_path:path}")
def preflight(rest_of_path: str) -> Response:
    """CORS preflight; the cross-origin middleware supplies the headers."""
    return Response(status_code=200)


@router.get("/health")
def health(request: Request, service: SpeechService = Depends(get_speech_service)):
    """Voice inventory summary and rate limiter statistics."""
    body = service.get_health_info()
    limiter = get_rate_limiter(request)
    if limiter is not None:
        stats = limiter.stats()
        body["rate_limit"] = {
            "limit": stats.limit,
            "window_seconds": stats.window_seconds,
            "tracked_clients": stats.tracked_clients,
            "total_admitted": stats.total_admitted,
            "total_rejected": stats.total_rejected,
        }
    else:
        body["rate_limit"] = None
    return body


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus metrics in text exposition format."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
