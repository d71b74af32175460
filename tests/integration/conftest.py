"""Fixtures that build the full application around scripted collaborators."""

from collections.abc import Callable, Iterator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chatrelay.config import Settings
from chatrelay.main import create_app
from chatrelay.orchestrator import Orchestrator
from chatrelay.providers.base import CompletionProvider
from chatrelay.providers.demo import DemoFallback
from chatrelay.voice.tts import SpeechSynthesizer
from tests.helpers import make_settings

AppFactory = Callable[..., FastAPI]


def _no_vendor_calls(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected speech vendor call: {request.url}")


@pytest.fixture
def build_app() -> AppFactory:
    """
    Factory for applications wired with test collaborators.

    Keyword arguments: `settings`, `provider` (None for demo mode) and
    `speech_transport` for the speech vendor HTTP calls.
    """

    def factory(
        settings: Settings | None = None,
        provider: CompletionProvider | None = None,
        speech_transport: httpx.AsyncBaseTransport | None = None,
    ) -> FastAPI:
        settings = settings or make_settings()
        orchestrator = Orchestrator(
            settings=settings,
            provider=provider,
            demo=DemoFallback(initial_delay=0, fragment_delay=0),
        )
        speech = SpeechSynthesizer(
            settings, transport=speech_transport or httpx.MockTransport(_no_vendor_calls)
        )
        return create_app(settings=settings, orchestrator=orchestrator, speech=speech)

    return factory


@pytest.fixture
def client(build_app: AppFactory) -> Iterator[TestClient]:
    """Test client for a demo-mode application."""
    with TestClient(build_app()) as test_client:
        yield test_client
