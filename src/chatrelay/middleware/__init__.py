"""
Middleware components for the chat relay.

Provides request validation and security middleware for the FastAPI application.
"""

from chatrelay.middleware.request_size import request_size_validator
from chatrelay.middleware.security_headers import security_headers_middleware

__all__ = ["request_size_validator", "security_headers_middleware"]
