"""
Request size validation middleware.

Rejects oversized bodies from the Content-Length header before the route
parses them.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from chatrelay.utils.errors import RequestSizeError
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)


def declared_body_size(request: Request) -> int | None:
    """Content-Length as an int, or None when absent or malformed."""
    header = request.headers.get("content-length")
    if header is None:
        return None
    try:
        return int(header)
    except ValueError:
        return None


async def request_size_validator(request: Request, call_next):  # type: ignore
    """Middleware to validate request body size.

    Returns 413 Payload Too Large when Content-Length exceeds
    `max_request_body_size`. Requests without a usable Content-Length go
    through unchanged.
    """
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return await call_next(request)

    max_size = request.app.state.settings.max_request_body_size
    content_length = declared_body_size(request)

    if content_length is not None and content_length > max_size:
        error = RequestSizeError(content_length, max_size)
        logger.warning(
            "Request body too large",
            extra={
                "actual_size": content_length,
                "max_size": max_size,
                "path": request.url.path,
                "method": request.method,
            },
        )
        # Middleware runs outside the exception handlers, so the error is rendered here
        return JSONResponse(
            status_code=413,
            content={
                "error": error.message,
                "code": error.error_code,
                "actual_size_bytes": content_length,
                "max_size_bytes": max_size,
            },
        )

    return await call_next(request)
