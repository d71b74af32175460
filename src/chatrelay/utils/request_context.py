"""
Request context management using contextvars.

Provides a context variable carrying the request ID across async operations,
including the relay generator that keeps running after the route returns.
"""

from contextvars import ContextVar

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str) -> None:
    """
    Set the current request ID in context.

    Args:
        request_id: The request ID to store in context
    """
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    """
    Get the current request ID from context.

    Returns:
        The stored request ID, or None if not set
    """
    return _request_id_var.get()
