"""
Main FastAPI application for the chat relay.

Sets up the application with all routes, middleware, and startup/shutdown logic.
"""

import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from chatrelay.api import (
    analysis_router,
    chat_router,
    health_router,
    models_router,
    voice_router,
)
from chatrelay.api.limiter import get_limiter_status, limiter
from chatrelay.config import Settings
from chatrelay.middleware import request_size_validator, security_headers_middleware
from chatrelay.orchestrator import Orchestrator
from chatrelay.providers import build_completion_provider, build_demo_fallback
from chatrelay.utils.errors import RelayServiceError, RequestSizeError, ValidationError
from chatrelay.utils.logging import get_logger, setup_logging
from chatrelay.utils.request_context import set_request_id
from chatrelay.voice.tts import SpeechSynthesizer

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """
    Manage application lifecycle.

    Logs startup state and releases provider and speech vendor connections on
    shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        Control during application runtime
    """
    logger.info("Application starting up")
    orchestrator: Orchestrator = app.state.orchestrator
    logger.info(
        "Rate limiter initialized with status",
        extra={"component": "rate_limiter", **get_limiter_status()},
    )
    if orchestrator.demo_mode:
        logger.warning("Serving chat in demo mode - no provider API key configured")

    yield

    logger.info("Application shutting down")
    await orchestrator.aclose()
    await app.state.speech.aclose()


def _validation_details(exc: RequestValidationError) -> list[dict[str, object]]:
    return [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]


def create_app(
    settings: Settings | None = None,
    orchestrator: Orchestrator | None = None,
    speech: SpeechSynthesizer | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        orchestrator: Pre-built orchestrator; built from settings when omitted
        speech: Pre-built speech synthesizer; built from settings when omitted

    Returns:
        Configured FastAPI application instance
    """
    if settings is None:
        try:
            settings = Settings()
        except Exception as exc:
            # Cannot use logger yet - settings failed to load
            print(f"CRITICAL: Failed to load settings: {exc}", file=sys.stderr)
            raise

    setup_logging(settings)

    logger.info(
        "Creating FastAPI application",
        extra={
            "environment": settings.environment,
            "api_title": settings.api_title,
            "llm_provider": settings.llm_provider,
            "demo_mode": settings.demo_mode,
        },
    )

    if orchestrator is None:
        orchestrator = Orchestrator(
            settings=settings,
            provider=build_completion_provider(settings),
            demo=build_demo_fallback(settings),
        )

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Streaming chat relay with provider fallback and speech synthesis",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.speech = speech or SpeechSynthesizer(settings)
    app.state.limiter = limiter

    # Add request ID and timing middleware (added first, executes last)
    @app.middleware("http")
    async def add_request_tracking(request: Request, call_next):  # type: ignore
        """Add request tracking with streaming-aware timing."""
        request_id = request.headers.get("X-Request-ID", "").strip()
        if not request_id:
            request_id = f"req_{int(time.time() * 1000)}"

        # Store request ID in context for propagation through async operations
        set_request_id(request_id)

        start_time = time.time()

        response = await call_next(request)

        # For streaming, this measures "time to first byte"
        first_byte_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id

        if response.headers.get("content-type", "").startswith("text/event-stream"):
            response.headers["X-First-Byte-Time"] = str(first_byte_time)
            logger.info(
                "Streaming response initiated",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "first_byte_time": first_byte_time,
                },
            )
        else:
            response.headers["X-Response-Time"] = str(first_byte_time)
            logger.info(
                "Response completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "response_time": first_byte_time,
                },
            )

        return response

    app.middleware("http")(request_size_validator)

    if settings.enable_security_headers:
        app.middleware("http")(security_headers_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Reject malformed bodies before any provider call."""
        details = _validation_details(exc)
        logger.warning(
            "Invalid request format",
            extra={"path": str(request.url.path), "error_count": len(details)},
        )
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request format", "details": details},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning(
            f"Validation error: {exc.message}",
            extra={"error_code": exc.error_code, "path": str(request.url.path)},
        )
        return JSONResponse(
            status_code=400,
            content={"error": exc.message, "code": exc.error_code},
        )

    @app.exception_handler(RequestSizeError)
    async def request_size_error_handler(request: Request, exc: RequestSizeError) -> JSONResponse:
        """Handle request size validation errors."""
        logger.warning(
            "Request body too large",
            extra={
                "actual_size": exc.actual_size,
                "max_size": exc.max_size,
                "path": str(request.url.path),
                "method": request.method,
            },
        )
        return JSONResponse(
            status_code=413,  # Payload Too Large
            content={
                "error": exc.message,
                "code": exc.error_code,
                "actual_size_bytes": exc.actual_size,
                "max_size_bytes": exc.max_size,
            },
        )

    @app.exception_handler(RelayServiceError)
    async def relay_error_handler(request: Request, exc: RelayServiceError) -> JSONResponse:
        """Handle every other service error as an internal failure."""
        logger.error(
            f"Relay service error: {exc.message}",
            extra={"error_code": exc.error_code, "path": str(request.url.path)},
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": exc.error_code},
        )

    @app.middleware("http")
    async def log_rate_limit_headers(request: Request, call_next):  # type: ignore
        """Log rate limit headers for every limited request."""
        response = await call_next(request)

        limit = response.headers.get("X-RateLimit-Limit")
        remaining = response.headers.get("X-RateLimit-Remaining")

        if limit and remaining:
            log_fn = logger.warning if response.status_code == 429 else logger.debug
            log_fn(
                "Rate limit checkpoint",
                extra={
                    "path": str(request.url.path),
                    "client": request.client.host if request.client else "unknown",
                    "status": response.status_code,
                    "limit": limit,
                    "remaining": remaining,
                    "reset": response.headers.get("X-RateLimit-Reset"),
                },
            )

        return response

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """
        Handle rate limit exceeded errors.

        Returns HTTP 429 with Retry-After header indicating when client can retry.
        """
        logger.warning(
            "Rate limit exceeded",
            extra={
                "client": request.client.host if request.client else "unknown",
                "path": str(request.url.path),
                "limit": str(exc.detail),
            },
        )
        return JSONResponse(
            status_code=429,
            headers={"Retry-After": "60"},
            content={"error": "Too many requests", "detail": str(exc.detail)},
        )

    app.include_router(health_router)
    app.include_router(chat_router)
    app.include_router(analysis_router)
    app.include_router(voice_router)
    app.include_router(models_router)

    logger.info("FastAPI application created successfully")

    return app


# Create the application instance for running with uvicorn
app = create_app()
