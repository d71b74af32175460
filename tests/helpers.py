"""Test doubles and builders shared across the test suite."""

from collections.abc import AsyncIterator

from chatrelay.config import Settings
from chatrelay.models.messages import (
    CompletionRequest,
    CompletionResponse,
    Message,
    MessageRole,
    ModelInfo,
    TokenUsage,
    create_message,
)
from chatrelay.providers.base import CompletionProvider


def make_settings(**overrides) -> Settings:
    """Settings isolated from the host environment, in demo mode with no delays."""
    values = {
        "_env_file": None,
        "environment": "test",
        "log_format": "standard",
        "openai_api_key": None,
        "anthropic_api_key": None,
        "elevenlabs_api_key": None,
        "azure_speech_key": None,
        "demo_initial_delay_ms": 0,
        "demo_fragment_delay_ms": 0,
    }
    values.update(overrides)
    return Settings(**values)


def user(content: str) -> Message:
    return create_message(content, role=MessageRole.USER)


class FakeProvider(CompletionProvider):
    """
    Scripted completion provider.

    Streams `tokens` one by one, then raises `stream_error` if set. One-shot
    calls return the joined tokens or raise `error`.
    """

    def __init__(
        self,
        tokens: list[str] | None = None,
        error: Exception | None = None,
        stream_error: Exception | None = None,
    ) -> None:
        super().__init__(name="fake", model="fake-model")
        self.tokens = tokens if tokens is not None else ["Hello", " there"]
        self.error = error
        self.stream_error = stream_error
        self.requests: list[CompletionRequest] = []
        self.closed_streams = 0
        self.closed = False

    async def complete_once(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return CompletionResponse(
            content="".join(self.tokens),
            model_id=self.model,
            token_usage=TokenUsage(prompt=3, completion=len(self.tokens), total=3 + len(self.tokens)),
            latency_ms=12,
        )

    async def stream_tokens(self, request: CompletionRequest) -> AsyncIterator[str]:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        try:
            for token in self.tokens:
                yield token
            if self.stream_error is not None:
                raise self.stream_error
        finally:
            self.closed_streams += 1

    def list_models(self) -> list[ModelInfo]:
        return [ModelInfo(id=self.model, name="Fake", provider=self.name)]

    async def aclose(self) -> None:
        self.closed = True
