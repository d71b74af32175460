"""
Anthropic SDK exception mapping utilities.

Maps Anthropic SDK exceptions onto the provider error taxonomy so the
orchestrator translates every vendor the same way.
"""

from anthropic import (
    APIConnectionError,
    APIError,
    APIResponseValidationError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    RateLimitError,
)

from chatrelay.utils.errors import (
    ProtocolError,
    ProviderConnectionError,
    ProviderTimeoutError,
    UpstreamError,
)
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "anthropic"


def map_anthropic_exception(exc: Exception) -> Exception:
    """
    Map Anthropic SDK exception to the provider error taxonomy.

    Args:
        exc: Exception from Anthropic SDK

    Returns:
        Mapped exception (or original if unmapped)
    """
    # APITimeoutError subclasses APIConnectionError, so it is checked first
    if isinstance(exc, APITimeoutError):
        logger.debug(
            "Mapping APITimeoutError to ProviderTimeoutError",
            extra={"original_error": str(exc)},
        )
        return ProviderTimeoutError(SERVICE_NAME, str(exc))

    if isinstance(exc, APIConnectionError):
        logger.debug(
            "Mapping APIConnectionError to ProviderConnectionError",
            extra={"original_error": str(exc)},
        )
        return ProviderConnectionError(SERVICE_NAME, str(exc))

    if isinstance(exc, RateLimitError):
        logger.debug(
            "Mapping RateLimitError to UpstreamError",
            extra={"original_error": str(exc)},
        )
        return UpstreamError(
            SERVICE_NAME, 429, f"rate limit exceeded: {exc}", error_code="RATE_LIMIT_EXCEEDED"
        )

    if isinstance(exc, AuthenticationError):
        logger.debug(
            "Mapping AuthenticationError to UpstreamError",
            extra={"original_error": str(exc)},
        )
        return UpstreamError(SERVICE_NAME, exc.status_code, f"invalid API key: {exc}")

    if isinstance(exc, APIStatusError):
        logger.debug(
            "Mapping APIStatusError to UpstreamError",
            extra={"original_error": str(exc), "status_code": exc.status_code},
        )
        return UpstreamError(SERVICE_NAME, exc.status_code, str(exc))

    if isinstance(exc, APIResponseValidationError):
        logger.debug(
            "Mapping APIResponseValidationError to ProtocolError",
            extra={"original_error": str(exc)},
        )
        return ProtocolError(SERVICE_NAME, str(exc))

    if isinstance(exc, APIError):
        logger.debug(
            "Mapping APIError to UpstreamError",
            extra={"original_error": str(exc)},
        )
        return UpstreamError(SERVICE_NAME, None, str(exc))

    logger.debug(
        f"No mapping for exception type {type(exc).__name__}, returning original",
        extra={"error_type": type(exc).__name__, "error": str(exc)},
    )
    return exc
