"""
Security headers middleware.

Adds browser hardening headers to every response, including event streams.
"""

from fastapi import Request

from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


def is_https_request(request: Request) -> bool:
    """True for direct HTTPS and for HTTPS terminated at a reverse proxy."""
    return (
        request.url.scheme == "https"
        or request.headers.get("X-Forwarded-Proto", "").lower() == "https"
    )


async def security_headers_middleware(request: Request, call_next):  # type: ignore
    """Middleware to add security headers to all responses.

    Strict-Transport-Security is only sent over HTTPS so that plain-HTTP
    development servers stay reachable.

    Args:
        request: FastAPI Request object
        call_next: Next middleware/route handler

    Returns:
        Response with security headers added
    """
    response = await call_next(request)

    response.headers.update(SECURITY_HEADERS)

    if is_https_request(request):
        response.headers["Strict-Transport-Security"] = HSTS_VALUE

    logger.debug(
        "Security headers applied",
        extra={"path": str(request.url.path), "hsts": is_https_request(request)},
    )
    return response
