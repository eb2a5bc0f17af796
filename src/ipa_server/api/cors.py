"""
Cross-Origin Policy.

Applied to every HTTP response, whatever its status, so browser clients
can read error bodies too:

    Access-Control-Allow-Origin:  *   (or the request Origin, see below)
    Access-Control-Allow-Methods: GET, POST, OPTIONS
    Access-Control-Allow-Headers: Content-Type, Charset, Accept

Requests whose Origin starts with a trusted prefix (by default
"chrome-extension://", the browser extension that calls this service)
get their exact origin echoed instead of the wildcard. Every other
origin still gets "*".

Preflight requests are served by the OPTIONS route in routes.py and
pick up these headers like any other response.

The middleware sits inside Starlette's ServerErrorMiddleware, which would
answer an unhandled exception without these headers. An exception that
escapes a route before its response has started is therefore logged and
answered here with a 500 INTERNAL_ERROR JSON body.
"""
from __future__ import annotations

from typing import Optional, Sequence

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ipa_server.core.errors import ErrorCode
from ipa_server.core.logging import exception, get_logger

_LOG = get_logger("ipa-server.cors")

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Charset, Accept"


def allow_origin_for(origin: Optional[str], trusted_prefixes: Sequence[str]) -> str:
    """
    Value of Access-Control-Allow-Origin for a request Origin.

    Examples:
        >>> allow_origin_for("chrome-extension://abc", ["chrome-extension://"])
        'chrome-extension://abc'
        >>> allow_origin_for("https://evil.example", ["chrome-extension://"])
        '*'
    """
    if origin and any(origin.startswith(prefix) for prefix in trusted_prefixes):
        return origin
    return "*"


class CrossOriginMiddleware:
    """
    ASGI middleware that stamps the cross-origin headers on every response.

    Usage:
        app.add_middleware(CrossOriginMiddleware, trusted_origin_prefixes=["chrome-extension://"])
    """

    def __init__(self, app: ASGIApp, trusted_origin_prefixes: Sequence[str] = ("chrome-extension://",)):
        self.app = app
        self.trusted_origin_prefixes = tuple(trusted_origin_prefixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        allow_origin = allow_origin_for(Headers(scope=scope).get("origin"), self.trusted_origin_prefixes)

        response_started = False

        async def send_with_cors(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                headers = MutableHeaders(scope=message)
                headers["Access-Control-Allow-Origin"] = allow_origin
                headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
                headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
                headers.add_vary_header("Origin")
            await send(message)

        try:
            await self.app(scope, receive, send_with_cors)
        except Exception:
            if response_started:
                raise
            exception(_LOG, "unhandled_error", path=scope.get("path"))
            response = JSONResponse(
                status_code=500,
                content={"ok": False, "error": ErrorCode.INTERNAL_ERROR, "message": "Internal server error"},
            )
            await response(scope, receive, send_with_cors)
