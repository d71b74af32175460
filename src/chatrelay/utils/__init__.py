"""
Utility modules for the chat relay.

This module provides error handling, logging, and helper utilities.
"""

from chatrelay.utils.errors import (
    ConfigurationError,
    ProtocolError,
    RelayServiceError,
    StreamAbortedError,
    StreamError,
    UpstreamError,
    ValidationError,
)
from chatrelay.utils.logging import get_logger, setup_logging
from chatrelay.utils.prompts import load_prompt

__all__ = [
    # Errors
    "RelayServiceError",
    "ConfigurationError",
    "ValidationError",
    "UpstreamError",
    "ProtocolError",
    "StreamAbortedError",
    "StreamError",
    # Logging
    "get_logger",
    "setup_logging",
    # Prompts
    "load_prompt",
]
