"""
FastAPI application for YouTube transcript extraction.

This module provides the HTTP surface: a health check and a POST endpoint
that turns a YouTube URL into the plain text of its captions.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
import yt_dlp.version
from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from transcript_api.config import settings
from transcript_api.errors import (
    ExtractionTimeoutError,
    ToolUnavailableError,
    TranscriptError,
    TranscriptNotFoundError,
)
from transcript_api.service import TranscriptExtractor, get_extractor
from transcript_api.utils import is_valid_youtube_url, sanitize_for_log

# Configure logging with request ID context
_log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
logging.basicConfig(level=_log_level)

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(_log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logger = structlog.get_logger()


# ============================================================================
# Lifespan Context Manager
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info("=" * 60)
    logger.info("YouTube Transcript API Starting")
    logger.info("=" * 60)
    logger.info(f"Listening port: {settings.port}")
    logger.info(f"Health check: http://localhost:{settings.port}/api/health")
    logger.info(f"Transcript endpoint: POST http://localhost:{settings.port}/api/transcript")
    logger.info("yt-dlp:")
    logger.info(f"  - Binary: {settings.ytdlp_binary}")
    logger.info(f"  - Package version: {yt_dlp.version.__version__}")
    logger.info(f"  - Timeout: {settings.ytdlp_timeout_seconds}s")
    logger.info(f"  - Output cap: {settings.ytdlp_max_output_bytes} bytes")
    logger.info("Security features:")
    logger.info(f"  - CORS origins: {', '.join(settings.cors_allowed_origins)}")
    logger.info(f"  - CORS origin pattern: {settings.cors_allowed_origin_regex}")
    logger.info(f"  - Security Headers: {'enabled' if settings.enable_security_headers else 'disabled'}")
    logger.info("=" * 60)

    yield

    # Remove the private work directory if one was created
    if get_extractor.cache_info().currsize:
        get_extractor().close()


# Create FastAPI app
app = FastAPI(
    title="YouTube Transcript API",
    description="Extract plain-text transcripts from YouTube captions using yt-dlp",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# ============================================================================
# Middleware Configuration
# ============================================================================


def configure_middleware():
    """Configure middleware based on settings."""
    from fastapi.middleware.cors import CORSMiddleware

    from transcript_api.middleware import (
        OriginAllowListMiddleware,
        RequestIdMiddleware,
        SecurityHeadersMiddleware,
    )

    # Innermost: CORS response headers for allowed origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_origin_regex=settings.cors_allowed_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    logger.info("CORS middleware enabled")

    app.add_middleware(
        OriginAllowListMiddleware,
        allowed_origins=settings.cors_allowed_origins,
        allowed_origin_regex=settings.cors_allowed_origin_regex,
    )

    app.add_middleware(RequestIdMiddleware)
    logger.info("Request ID middleware enabled")

    if settings.enable_security_headers:
        app.add_middleware(SecurityHeadersMiddleware)
        logger.info("Security headers middleware enabled")


# Configure middleware on import
configure_middleware()


# ============================================================================
# Pydantic Models
# ============================================================================


class TranscriptRequest(BaseModel):
    """Request body for transcript extraction."""

    url: str | None = Field(
        None,
        description="YouTube video URL (e.g., https://www.youtube.com/watch?v=xxx)",
    )

    model_config = {"json_schema_extra": {"example": {"url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"}}}


class TranscriptResponse(BaseModel):
    """Successful transcript extraction."""

    success: bool = Field(True, description="Always true for a successful extraction")
    url: str = Field(..., description="The requested video URL")
    transcript: str = Field(..., description="Caption text without timing or markup")
    length: int = Field(..., description="Number of characters in the transcript")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
                "transcript": "Hello world how are you",
                "length": 23,
            }
        }
    }


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: str | None = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Response model for the health check."""

    status: str = Field(..., description="Service status")
    message: str = Field(..., description="Human-readable status message")
    timestamp: str = Field(..., description="Current time (ISO 8601, UTC)")


def error_response(
    status_code: int, error: str, message: str, details: str | None = None
) -> Response:
    """Serialize an ErrorResponse, leaving out empty details."""
    body = ErrorResponse(error=error, message=message, details=details)
    return Response(
        content=body.model_dump_json(exclude_none=True),
        status_code=status_code,
        media_type="application/json",
    )


# ============================================================================
# Exception Handlers
# ============================================================================


@app.exception_handler(ToolUnavailableError)
async def tool_unavailable_handler(request: Request, exc: ToolUnavailableError):
    """yt-dlp missing on the host: a configuration error, never retried."""
    logger.error(f"yt-dlp not available: {exc}")
    return error_response(500, "Server Configuration Error", str(exc))


@app.exception_handler(TranscriptNotFoundError)
async def transcript_not_found_handler(request: Request, exc: TranscriptNotFoundError):
    return error_response(404, "Transcript Not Found", str(exc))


@app.exception_handler(ExtractionTimeoutError)
async def extraction_timeout_handler(request: Request, exc: ExtractionTimeoutError):
    logger.warning(f"Extraction timed out: {exc}")
    return error_response(
        408,
        "Request Timeout",
        "Transcript extraction took too long. Please try again.",
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle Pydantic validation errors with detailed feedback.

    Malformed bodies are client errors, so they are reported as 400 rather
    than FastAPI's default 422.
    """
    errors = exc.errors()
    logger.warning(f"Validation error: {errors}")

    error_details = []
    for error in errors:
        loc = " -> ".join(str(x) for x in error["loc"])
        error_details.append(f"{loc}: {error['msg']}")

    return error_response(
        400, "Validation Error", "Invalid request body", "; ".join(error_details)
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render routing errors (unknown path, wrong method) in the API's error shape."""
    if exc.status_code == 404:
        return error_response(404, "Not Found", "The requested endpoint does not exist")
    return error_response(exc.status_code, "HTTP Error", str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error: {exc!r}")
    return error_response(500, "Internal Server Error", "An unexpected error occurred")


# ============================================================================
# API Endpoints
# ============================================================================


@app.get("/api/health", response_model=HealthResponse, summary="Health check")
async def health() -> HealthResponse:
    """Report that the service is up."""
    return HealthResponse(
        status="OK",
        message="YouTube Transcript API is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@app.post(
    "/api/transcript",
    response_model=TranscriptResponse,
    responses={
        200: {"description": "Transcript extracted successfully"},
        400: {"model": ErrorResponse, "description": "Missing or invalid URL"},
        404: {"model": ErrorResponse, "description": "Video has no captions"},
        408: {"model": ErrorResponse, "description": "yt-dlp took too long"},
        500: {"model": ErrorResponse, "description": "yt-dlp missing or unexpected failure"},
    },
    summary="Extract the transcript of a YouTube video",
)
async def get_transcript(
    payload: TranscriptRequest | None = None,
    extractor: TranscriptExtractor = Depends(get_extractor),
) -> TranscriptResponse | Response:
    """
    Extract the captions of a YouTube video as plain text.

    Auto-generated English captions are tried first, then manually uploaded
    ones. Timing lines, cue numbers and inline markup are removed.

    **Example Usage:**
    ```bash
    curl -X POST "http://localhost:3001/api/transcript" \\
      -H "Content-Type: application/json" \\
      -d '{"url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"}'
    ```

    **Response Codes:**
    - 200: Success
    - 400: URL missing or not a YouTube URL
    - 404: No captions available for the video
    - 408: Extraction timed out
    - 500: yt-dlp not installed or unexpected failure
    """
    url = payload.url if payload else None

    if not url:
        return error_response(400, "Bad Request", "YouTube URL is required")

    if not is_valid_youtube_url(url):
        logger.warning(f"Invalid URL provided: {sanitize_for_log(url)}")
        return error_response(400, "Invalid URL", "Please provide a valid YouTube URL")

    try:
        result = await extractor.extract(url)
    except TranscriptError:
        # Mapped to a status code by the handlers above
        raise
    except Exception as e:
        logger.exception(f"Error extracting transcript: {e}")
        return error_response(
            500, "Internal Server Error", "Failed to extract transcript", str(e)[:200]
        )

    logger.info(
        f"Transcript extracted from {result.source} captions ({result.length} characters)",
        extraction_id=result.request_id,
    )
    return TranscriptResponse(url=url, transcript=result.text, length=result.length)
