"""
Unit tests for request size validation middleware.

Tests the middleware logic in isolation, verifying that request size validation
works correctly for different Content-Length values and request types.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatrelay.middleware.request_size import request_size_validator
from chatrelay.utils.errors import RelayServiceError, RequestSizeError, ValidationError
from tests.helpers import make_settings


class TestRequestSizeError:
    """Test RequestSizeError exception."""

    def test_request_size_error_creation(self) -> None:
        """Test creating RequestSizeError with size attributes."""
        error = RequestSizeError(actual_size=2_000_000, max_size=1_000_000)
        assert error.actual_size == 2_000_000
        assert error.max_size == 1_000_000
        assert error.error_code == "REQUEST_TOO_LARGE"
        assert "2000000" in error.message

    def test_request_size_error_inheritance(self) -> None:
        """Test RequestSizeError is a validation error."""
        error = RequestSizeError(actual_size=2_000_000, max_size=1_000_000)
        assert isinstance(error, ValidationError)
        assert isinstance(error, RelayServiceError)


def make_request(method: str = "POST", content_length: str | None = None, max_size: int = 1024):
    request = MagicMock()
    request.method = method
    request.url.path = "/api/chat"
    request.headers = {} if content_length is None else {"content-length": content_length}
    request.app.state.settings = make_settings(max_request_body_size=max_size)
    return request


@pytest.fixture
def call_next():
    return AsyncMock(return_value=MagicMock(status_code=200))


class TestRequestSizeValidator:
    """Test the middleware decision."""

    @pytest.mark.asyncio
    async def test_within_limit_passes(self, call_next) -> None:
        request = make_request(content_length="512")
        result = await request_size_validator(request, call_next)
        assert result.status_code == 200
        call_next.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_exactly_at_limit_passes(self, call_next) -> None:
        result = await request_size_validator(make_request(content_length="1024"), call_next)
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_over_limit_rejected(self, call_next) -> None:
        """Test oversized bodies get 413 without reaching the route."""
        result = await request_size_validator(make_request(content_length="4096"), call_next)

        assert result.status_code == 413
        body = json.loads(result.body)
        assert body["code"] == "REQUEST_TOO_LARGE"
        assert body["actual_size_bytes"] == 4096
        assert body["max_size_bytes"] == 1024
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_requests_skipped(self, call_next) -> None:
        result = await request_size_validator(make_request("GET", content_length="99999"), call_next)
        assert result.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "not-a-number"])
    async def test_missing_or_invalid_header_passes(self, call_next, header) -> None:
        result = await request_size_validator(make_request(content_length=header), call_next)
        assert result.status_code == 200
