"""
HTTP middleware for the transcript API.

- OriginAllowListMiddleware: rejects browsers calling from origins that are
  not on the allow-list before the request reaches any route.
- RequestIdMiddleware: tags every request with an X-Request-ID, binds it to
  the structlog context and writes the access log line.
- SecurityHeadersMiddleware: nosniff, framing and CSP headers for the JSON
  responses, with a looser CSP for the Swagger UI and ReDoc pages.
"""

import uuid
from contextvars import ContextVar

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from structlog.contextvars import bind_contextvars, clear_contextvars

from transcript_api.utils import is_origin_allowed, sanitize_for_log

logger = structlog.get_logger()

# Request ID context variable
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class OriginAllowListMiddleware(BaseHTTPMiddleware):
    """
    Refuse cross-origin requests from origins outside the allow-list.

    Starlette's CORSMiddleware only withholds the CORS response headers for
    unknown origins; this middleware answers them with 403 instead so the
    handler never runs. Requests without an Origin header pass through.
    """

    def __init__(self, app, allowed_origins: list[str], allowed_origin_regex: str | None = None):
        super().__init__(app)
        self.allowed_origins = allowed_origins
        self.allowed_origin_regex = allowed_origin_regex

    async def dispatch(self, request: Request, call_next) -> Response:
        origin = request.headers.get("origin")
        if not is_origin_allowed(origin, self.allowed_origins, self.allowed_origin_regex):
            logger.warning("Blocked by CORS", origin=sanitize_for_log(origin))
            return JSONResponse(
                status_code=403,
                content={"error": "Forbidden", "message": "Not allowed by CORS"},
            )
        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for tracing."""

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and add request ID."""
        # Generate or extract request ID
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request_id_var.set(request_id)

        # Clear and bind context vars for structured logging
        clear_contextvars()
        bind_contextvars(request_id=request_id)

        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            origin=sanitize_for_log(request.headers.get("origin", "")),
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


# FastAPI serves Swagger UI and ReDoc from these paths with CDN assets and
# inline bootstrap scripts; every other response is JSON
DOCS_PATH_PREFIXES = ("/docs", "/redoc", "/openapi")
DOCS_CSP = (
    "default-src 'self' 'unsafe-inline'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' https://fastapi.tiangolo.com; "
    "connect-src 'self' https://cdn.jsdelivr.net"
)
API_CSP = "default-src 'self'"
HSTS = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Harden the JSON API and the interactive docs pages.

    Transcripts are caption text from arbitrary videos, so the JSON
    responses must never be sniffed or framed as HTML. The docs pages get
    the looser policy Swagger UI needs to load.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if request.url.path.startswith(DOCS_PATH_PREFIXES):
            response.headers["Content-Security-Policy"] = DOCS_CSP
        else:
            response.headers["Content-Security-Policy"] = API_CSP

        # Browsers ignore HSTS received over plain HTTP
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS

        return response
