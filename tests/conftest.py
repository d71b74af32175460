"""Pytest configuration and shared fixtures."""

import os

# Must be set before chatrelay.api.limiter is imported
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest  # noqa: E402

from chatrelay.config import Settings  # noqa: E402
from chatrelay.providers.demo import DemoFallback, ResponseCursor  # noqa: E402
from tests.helpers import FakeProvider, make_settings  # noqa: E402


@pytest.fixture
def test_settings() -> Settings:
    """Demo-mode settings with zero simulated latency."""
    return make_settings()


@pytest.fixture
def cursor() -> ResponseCursor:
    return ResponseCursor()


@pytest.fixture
def demo(cursor: ResponseCursor) -> DemoFallback:
    """Demo fallback with no delays."""
    return DemoFallback(cursor=cursor, initial_delay=0, fragment_delay=0)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
