"""
Unit tests for the chat orchestrator.

Providers are replaced by FakeProvider so that routing, error translation and
callback delivery are tested without network access.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from chatrelay.callbacks import StreamCallbacks
from chatrelay.models.api import ErrorCategory
from chatrelay.models.events import ChunkEvent, CompleteEvent, ErrorEvent, StartEvent, TerminalEvent
from chatrelay.models.personality import PERSONALITIES
from chatrelay.orchestrator import ERROR_MESSAGES, ChatOptions, Orchestrator, translate_error
from chatrelay.providers.demo import DEMO_MODEL_ID, DEMO_RESPONSES, DemoFallback
from chatrelay.utils.errors import (
    ConfigurationError,
    ProviderConnectionError,
    ProviderTimeoutError,
    StreamAbortedError,
    StreamError,
    UpstreamError,
)
from tests.helpers import FakeProvider, make_settings, user


class RecordingCallbacks:
    """Collects callback invocations in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def callbacks(self) -> StreamCallbacks:
        return StreamCallbacks(
            on_start=lambda: self.calls.append(("start", None)),
            on_chunk=lambda chunk: self.calls.append(("chunk", chunk)),
            on_complete=lambda content: self.calls.append(("complete", content)),
            on_error=lambda error: self.calls.append(("error", error)),
        )

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def demo_orchestrator(test_settings, demo) -> Orchestrator:
    return Orchestrator(settings=test_settings, provider=None, demo=demo)


@pytest.fixture
def provider_orchestrator(test_settings, demo, fake_provider) -> Orchestrator:
    return Orchestrator(settings=test_settings, provider=fake_provider, demo=demo)


class TestTranslateError:
    """Test raw error to user-facing message translation."""

    @pytest.mark.parametrize(
        "raw,category",
        [
            ("Invalid API key provided", ErrorCategory.CONFIGURATION),
            ("Rate limit reached for requests", ErrorCategory.RATE_LIMIT),
            ("Network is unreachable", ErrorCategory.NETWORK),
            ("Failed to fetch", ErrorCategory.NETWORK),
            ("could not connect to host", ErrorCategory.NETWORK),
            ("Timeout waiting for response", ErrorCategory.TIMEOUT),
            ("operation timed out", ErrorCategory.TIMEOUT),
            ("something odd", ErrorCategory.GENERIC),
        ],
    )
    def test_substring_categories(self, raw: str, category: ErrorCategory) -> None:
        """Test lower-cased substring matching picks the category."""
        assert translate_error(RuntimeError(raw)) == (category, ERROR_MESSAGES[category])

    def test_first_matching_category_wins(self) -> None:
        """Test API key problems win over later categories in the same text."""
        category, _ = translate_error(RuntimeError("api key rejected: network timeout"))
        assert category == ErrorCategory.CONFIGURATION

    def test_provider_timeout_is_timeout(self) -> None:
        """Test typed timeouts are timeouts even if their text mentions connecting."""
        exc = ProviderTimeoutError("openai", "ConnectTimeout while connecting")
        assert translate_error(exc) == (
            ErrorCategory.TIMEOUT,
            "Request timed out. Please try again.",
        )

    def test_asyncio_timeout(self) -> None:
        assert translate_error(asyncio.TimeoutError())[0] == ErrorCategory.TIMEOUT

    def test_connection_error_is_network(self) -> None:
        assert translate_error(ProviderConnectionError("openai", "refused"))[0] == ErrorCategory.NETWORK

    def test_upstream_429_is_rate_limit(self) -> None:
        assert translate_error(UpstreamError("openai", 429, "slow down"))[0] == ErrorCategory.RATE_LIMIT

    def test_configuration_error(self) -> None:
        assert translate_error(ConfigurationError("missing"))[0] == ErrorCategory.CONFIGURATION


class TestProcessChatDemo:
    """Test one-shot chat in demo mode."""

    @pytest.mark.asyncio
    async def test_hello_returns_greeting(self, demo_orchestrator: Orchestrator) -> None:
        """Test the greeting trigger and demo metadata."""
        result = await demo_orchestrator.process_chat([user("hello")])

        assert result.success is True
        assert result.data.message.content == DEMO_RESPONSES[0]
        assert result.data.message.role == "assistant"
        assert result.data.message.metadata == {"model": DEMO_MODEL_ID, "isDemo": True}
        assert result.data.metadata["demoMode"] is True
        assert result.data.metadata["personality"] == "teacher"

    @pytest.mark.asyncio
    async def test_unknown_personality_fails(self, demo_orchestrator: Orchestrator) -> None:
        """Test an unknown personality is reported as a CHAT_ERROR result."""
        result = await demo_orchestrator.process_chat([user("hello")], ChatOptions(personality="pirate"))
        assert result.success is False
        assert result.error.code == "CHAT_ERROR"


class TestProcessChatProvider:
    """Test one-shot chat through a provider."""

    @pytest.mark.asyncio
    async def test_personality_shapes_request(
        self, provider_orchestrator: Orchestrator, fake_provider: FakeProvider
    ) -> None:
        """Test the personality's prompt and creativity reach the provider."""
        result = await provider_orchestrator.process_chat(
            [user("write a poem")], ChatOptions(personality="poet")
        )

        request = fake_provider.requests[0]
        assert request.system_prompt == PERSONALITIES["poet"].system_prompt
        assert request.temperature == PERSONALITIES["poet"].creativity
        assert request.max_tokens == 2000
        assert result.success is True
        assert result.data.message.content == "Hello there"
        assert result.data.message.metadata == {"model": "fake-model", "tokens": 5, "latency": 12}
        assert result.data.metadata["demoMode"] is False

    @pytest.mark.asyncio
    async def test_timeout_is_translated(self, test_settings, demo) -> None:
        """Test a provider timeout never leaks its raw text."""
        provider = FakeProvider(error=ProviderTimeoutError("openai", "read timed out at 60s"))
        orchestrator = Orchestrator(settings=test_settings, provider=provider, demo=demo)

        result = await orchestrator.process_chat([user("hello")])

        assert result.success is False
        assert result.error.code == "CHAT_ERROR"
        assert result.error.category == ErrorCategory.TIMEOUT
        assert result.error.message == "Request timed out. Please try again."
        assert result.error.details is None

    @pytest.mark.asyncio
    async def test_development_includes_details(self, demo) -> None:
        """Test raw error text is attached only in development."""
        settings = make_settings(environment="development")
        provider = FakeProvider(error=UpstreamError("openai", 500, "boom"))
        orchestrator = Orchestrator(settings=settings, provider=provider, demo=demo)

        result = await orchestrator.process_chat([user("hello")])

        assert result.error.details == "openai API error (500): boom"


class TestStreaming:
    """Test streaming chat."""

    @pytest.mark.asyncio
    async def test_stream_chat_demo(self, demo_orchestrator: Orchestrator) -> None:
        """Test demo streaming relays the features response."""
        events = [event async for event in demo_orchestrator.stream_chat([user("what can you do")])]

        assert events[0] == StartEvent()
        assert events[-2] == CompleteEvent(content=DEMO_RESPONSES[2])
        assert events[-1] == TerminalEvent()
        chunks = "".join(event.content for event in events if isinstance(event, ChunkEvent))
        assert chunks == DEMO_RESPONSES[2]

    @pytest.mark.asyncio
    async def test_stream_error_is_translated(self, test_settings, demo) -> None:
        """Test mid-stream failures become a translated error event."""
        provider = FakeProvider(tokens=["a"], stream_error=ProviderConnectionError("openai", "reset"))
        orchestrator = Orchestrator(settings=test_settings, provider=provider, demo=demo)

        events = [event async for event in orchestrator.stream_chat([user("x")])]

        assert events[-1] == ErrorEvent(message=ERROR_MESSAGES[ErrorCategory.NETWORK])
        assert provider.closed_streams == 1

    @pytest.mark.asyncio
    async def test_stream_frames_end_with_done(self, demo_orchestrator: Orchestrator) -> None:
        frames = [frame async for frame in demo_orchestrator.stream_frames([user("hi")])]
        assert frames[-1] == "data: [DONE]\n\n"


class TestProcessChatStream:
    """Test callback-driven streaming."""

    @pytest.mark.asyncio
    async def test_callbacks_in_order(self, provider_orchestrator: Orchestrator) -> None:
        """Test start, chunks then complete with the concatenated content."""
        recorder = RecordingCallbacks()
        await provider_orchestrator.process_chat_stream([user("x")], recorder.callbacks())

        assert recorder.calls == [
            ("start", None),
            ("chunk", "Hello"),
            ("chunk", " there"),
            ("complete", "Hello there"),
        ]

    @pytest.mark.asyncio
    async def test_error_excludes_complete(self, test_settings, demo) -> None:
        """Test a failing stream calls on_error once and never on_complete."""
        provider = FakeProvider(tokens=["a"], stream_error=RuntimeError("rate limit exceeded"))
        orchestrator = Orchestrator(settings=test_settings, provider=provider, demo=demo)
        recorder = RecordingCallbacks()

        await orchestrator.process_chat_stream([user("x")], recorder.callbacks())

        assert recorder.names() == ["start", "chunk", "error"]
        error = recorder.calls[-1][1]
        assert isinstance(error, StreamError)
        assert error.message == ERROR_MESSAGES[ErrorCategory.RATE_LIMIT]

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self, demo_orchestrator: Orchestrator) -> None:
        """Test coroutine callbacks are supported."""
        on_complete = AsyncMock()
        await demo_orchestrator.process_chat_stream(
            [user("hello")], StreamCallbacks(on_complete=on_complete)
        )
        on_complete.assert_awaited_once_with(DEMO_RESPONSES[0])

    @pytest.mark.asyncio
    async def test_raising_callback_stops_stream(
        self, provider_orchestrator: Orchestrator, fake_provider: FakeProvider, caplog
    ) -> None:
        """Test a failing sink ends the stream and closes the source."""
        recorder = RecordingCallbacks()

        def broken_chunk(chunk: str) -> None:
            recorder.calls.append(("chunk", chunk))
            raise OSError("sink closed")

        callbacks = recorder.callbacks()
        callbacks.on_chunk = broken_chunk

        await provider_orchestrator.process_chat_stream([user("x")], callbacks)

        assert recorder.names() == ["start", "chunk"]
        assert fake_provider.closed_streams == 1
        assert any(StreamAbortedError().error_code in str(record.__dict__) for record in caplog.records)


class TestAnalysisAndVoice:
    """Test provider-only operations."""

    @pytest.mark.asyncio
    async def test_analysis_requires_provider(self, demo_orchestrator: Orchestrator) -> None:
        """Test demo mode reports a configuration failure."""
        result = await demo_orchestrator.process_analysis("some text")
        assert result.success is False
        assert result.error.code == "ANALYSIS_ERROR"
        assert result.error.category == ErrorCategory.CONFIGURATION
        assert result.error.message == ERROR_MESSAGES[ErrorCategory.CONFIGURATION]

    @pytest.mark.asyncio
    async def test_analysis_request_shape(
        self, provider_orchestrator: Orchestrator, fake_provider: FakeProvider
    ) -> None:
        """Test the analysis prompt, temperature and result content."""
        result = await provider_orchestrator.process_analysis("quarterly numbers", "financial")

        request = fake_provider.requests[0]
        assert "financial analysis" in request.system_prompt
        assert request.temperature == 0.3
        assert request.messages[0].content == "quarterly numbers"
        assert result.success is True
        assert result.data.content == "Hello there"
        assert result.data.metadata["analysisType"] == "financial"

    @pytest.mark.asyncio
    async def test_voice_requires_provider(self, demo_orchestrator: Orchestrator) -> None:
        result = await demo_orchestrator.process_voice_request("hello")
        assert result.success is False
        assert result.error.code == "VOICE_ERROR"

    @pytest.mark.asyncio
    async def test_voice_request_shape(
        self, provider_orchestrator: Orchestrator, fake_provider: FakeProvider
    ) -> None:
        """Test the personality prompt is extended with the speech instruction."""
        result = await provider_orchestrator.process_voice_request("hello", "therapist")

        request = fake_provider.requests[0]
        assert request.system_prompt.startswith(PERSONALITIES["therapist"].system_prompt)
        assert "spoken" in request.system_prompt
        assert result.success is True
        assert result.data.metadata["optimizedForVoice"] is True


class TestHealthAndLifecycle:
    """Test health probing and shutdown."""

    @pytest.mark.asyncio
    async def test_healthy_in_demo_mode(self, demo_orchestrator: Orchestrator) -> None:
        report = await demo_orchestrator.health_check()
        assert report.healthy is True
        assert report.services == {"chat": True, "streaming": True}

    @pytest.mark.asyncio
    async def test_demo_probe_leaves_shared_cursor_alone(self, test_settings, cursor) -> None:
        """Test repeated probes neither advance the cursor nor wait the demo latency."""
        demo = DemoFallback(cursor=cursor, initial_delay=30, fragment_delay=30)
        orchestrator = Orchestrator(settings=test_settings, provider=None, demo=demo)

        for _ in range(3):
            report = await asyncio.wait_for(orchestrator.health_check(), timeout=1)
            assert report.healthy is True

        assert cursor.position == 0

    @pytest.mark.asyncio
    async def test_degraded_when_provider_fails(self, test_settings, demo) -> None:
        provider = FakeProvider(error=UpstreamError("openai", 503, "unavailable"))
        orchestrator = Orchestrator(settings=test_settings, provider=provider, demo=demo)
        report = await orchestrator.health_check()
        assert report.healthy is False
        assert report.services == {"chat": False, "streaming": False}

    @pytest.mark.asyncio
    async def test_aclose_closes_provider(
        self, provider_orchestrator: Orchestrator, fake_provider: FakeProvider
    ) -> None:
        await provider_orchestrator.aclose()
        assert fake_provider.closed is True

    def test_list_models(self, demo_orchestrator: Orchestrator, provider_orchestrator: Orchestrator) -> None:
        assert [model.id for model in demo_orchestrator.list_models()] == [DEMO_MODEL_ID]
        assert [model.id for model in provider_orchestrator.list_models()] == ["fake-model"]
