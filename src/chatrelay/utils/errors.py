"""
Custom exception hierarchy for the chat relay service.

Provides domain-specific exceptions for the provider, relay and HTTP layers.
"""


class RelayServiceError(Exception):
    """
    Base exception for all chat relay errors.

    All application errors should inherit from this class.
    """

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """
        Initialize a relay service error.

        Args:
            message: Human-readable error message
            error_code: Optional error code for categorization
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__


class ConfigurationError(RelayServiceError):
    """
    Raised when no usable configuration exists for a requested path.

    Typically thrown when a provider-only operation runs without API keys.
    """


class ValidationError(RelayServiceError):
    """
    Raised when input validation fails.

    Indicates that provided data doesn't meet requirements.
    """


class RequestSizeError(ValidationError):
    """Raised when request body exceeds size limit."""

    def __init__(self, actual_size: int, max_size: int) -> None:
        """
        Initialize a request size error.

        Args:
            actual_size: Actual size of request body in bytes
            max_size: Maximum allowed size in bytes
        """
        message = (
            f"Request body size ({actual_size} bytes) exceeds maximum allowed ({max_size} bytes)"
        )
        super().__init__(message, error_code="REQUEST_TOO_LARGE")
        self.actual_size = actual_size
        self.max_size = max_size


class UpstreamError(RelayServiceError):
    """
    Raised when a completion or speech provider answers with a failure.

    Wraps the vendor's status code and raw response text.
    """

    def __init__(
        self,
        service_name: str,
        status_code: int | None,
        raw_message: str,
        error_code: str | None = None,
    ) -> None:
        """
        Initialize an upstream error.

        Args:
            service_name: Name of the external service
            status_code: HTTP status code returned by the service, if any
            raw_message: Raw error text from the service
            error_code: Optional error code for categorization
        """
        if status_code is not None:
            message = f"{service_name} API error ({status_code}): {raw_message}"
        else:
            message = f"{service_name} API error: {raw_message}"
        super().__init__(message, error_code or "UPSTREAM_ERROR")
        self.service_name = service_name
        self.status_code = status_code
        self.raw_message = raw_message


class ProviderTimeoutError(UpstreamError):
    """Raised when a provider request exceeds its timeout."""

    def __init__(self, service_name: str, raw_message: str = "request timed out") -> None:
        super().__init__(
            service_name=service_name,
            status_code=None,
            raw_message=f"timeout: {raw_message}",
            error_code="UPSTREAM_TIMEOUT",
        )


class ProviderConnectionError(UpstreamError):
    """Raised when the connection to a provider fails."""

    def __init__(self, service_name: str, raw_message: str = "connection failed") -> None:
        super().__init__(
            service_name=service_name,
            status_code=None,
            raw_message=f"network error: {raw_message}",
            error_code="UPSTREAM_CONNECTION_ERROR",
        )


class ProtocolError(RelayServiceError):
    """
    Raised when a provider payload cannot be parsed into the expected schema.

    Treated the same as an upstream failure by the orchestrator.
    """

    def __init__(self, service_name: str, detail: str) -> None:
        super().__init__(
            f"Unparseable {service_name} payload: {detail}",
            error_code="PROTOCOL_ERROR",
        )
        self.service_name = service_name
        self.detail = detail


class StreamAbortedError(RelayServiceError):
    """
    Raised when a stream ends before a terminal signal.

    Covers consumers that disconnect mid-stream and producers that close the
    connection without `complete`, `[DONE]` or `error`.
    """

    def __init__(self, message: str = "Stream aborted before completion") -> None:
        super().__init__(message, error_code="STREAM_ABORTED")


class StreamError(RelayServiceError):
    """Carries the message of an `error` event to stream callbacks."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message, error_code or "STREAM_ERROR")
