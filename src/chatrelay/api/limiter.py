"""
Rate limiting configuration using SlowAPI.

Requests are limited per client IP address; the service has no user identity
to key on.
"""

import os

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

CHAT_LIMIT = "30/minute"
ANALYSIS_LIMIT = "10/minute"
VOICE_LIMIT = "20/minute"
MODELS_LIMIT = "60/minute"
DEFAULT_LIMIT = "100/hour"


def get_client_ip(request: Request) -> str:
    """
    Rate limit key for a request.

    Returns:
        "ip_{client_ip}"
    """
    key = f"ip_{get_remote_address(request)}"
    logger.debug(
        "Rate limit key resolved",
        extra={"key": key, "path": str(request.url.path)},
    )
    return key


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[DEFAULT_LIMIT],
    headers_enabled=True,  # Include X-RateLimit-* headers in responses
    enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",  # Disable in tests
)


def get_limiter_status() -> dict[str, str | bool]:
    """
    Structured dump of the rate limiter configuration for startup logging.
    """
    return {
        "enabled": limiter.enabled,
        "default_limit": DEFAULT_LIMIT,
        "chat_limit": CHAT_LIMIT,
        "analysis_limit": ANALYSIS_LIMIT,
        "voice_limit": VOICE_LIMIT,
        "models_limit": MODELS_LIMIT,
        "key_function_type": "ip-based",
    }
