"""
Chat orchestrator.

Routes every chat, analysis and voice request to the configured completion
provider, or to the demo fallback when no provider is configured, and turns
failures into user-facing results. Built once at startup and shared by all
requests; it carries no per-request state.
"""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial

from chatrelay.callbacks import StreamCallbacks, invoke
from chatrelay.config import Settings
from chatrelay.models.api import ErrorCategory, ErrorDetail, HealthReport, OrchestratorResult
from chatrelay.models.events import (
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StartEvent,
    StreamEvent,
)
from chatrelay.models.messages import (
    CompletionRequest,
    Message,
    MessageRole,
    ModelInfo,
    create_message,
)
from chatrelay.models.personality import PersonalityConfig, get_personality
from chatrelay.providers.base import CompletionProvider
from chatrelay.providers.demo import DEMO_MODEL_ID, DemoFallback, ResponseCursor
from chatrelay.relay.stream import StreamRelay
from chatrelay.utils.errors import (
    ConfigurationError,
    ProviderConnectionError,
    ProviderTimeoutError,
    StreamAbortedError,
    StreamError,
    UpstreamError,
)
from chatrelay.utils.logging import get_logger
from chatrelay.utils.prompts import load_prompt

logger = get_logger(__name__)

FALLBACK_ANALYSIS_PROMPT = (
    "You are an expert analyst. Perform a {analysis_type} analysis on the provided content."
)
FALLBACK_VOICE_PROMPT = (
    "Format your response to be spoken aloud. Keep it short and avoid markdown or lists."
)

ANALYSIS_SYSTEM_PROMPT = load_prompt(
    "analysis", fallback=FALLBACK_ANALYSIS_PROMPT, required=("analysis_type",)
)
VOICE_SYSTEM_PROMPT = load_prompt("voice", fallback=FALLBACK_VOICE_PROMPT)

ERROR_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.CONFIGURATION: "AI service configuration error. Please check your settings.",
    ErrorCategory.RATE_LIMIT: "Too many requests. Please wait a moment and try again.",
    ErrorCategory.NETWORK: "Network error. Please check your connection and try again.",
    ErrorCategory.TIMEOUT: "Request timed out. Please try again.",
    ErrorCategory.GENERIC: "An unexpected error occurred. Please try again.",
}

# Ordered; the first matching bucket wins.
_ERROR_PATTERNS: tuple[tuple[ErrorCategory, tuple[str, ...]], ...] = (
    (ErrorCategory.CONFIGURATION, ("api key",)),
    (ErrorCategory.RATE_LIMIT, ("rate limit",)),
    (ErrorCategory.NETWORK, ("network", "fetch", "connect")),
    (ErrorCategory.TIMEOUT, ("timeout", "timed out")),
)

HEALTH_CHECK_PROMPT = "Health check"


def categorize_error(exc: BaseException) -> ErrorCategory:
    """
    Bucket an exception into a user-facing error category.

    Typed transport and configuration failures are bucketed directly; anything
    else is matched on its lower-cased text.
    """
    if isinstance(exc, ConfigurationError):
        return ErrorCategory.CONFIGURATION
    if isinstance(exc, (ProviderTimeoutError, asyncio.TimeoutError, TimeoutError)):
        return ErrorCategory.TIMEOUT
    if isinstance(exc, ProviderConnectionError):
        return ErrorCategory.NETWORK
    if isinstance(exc, UpstreamError) and exc.status_code == 429:
        return ErrorCategory.RATE_LIMIT

    text = str(exc).lower()
    for category, needles in _ERROR_PATTERNS:
        if any(needle in text for needle in needles):
            return category
    return ErrorCategory.GENERIC


def translate_error(exc: BaseException) -> tuple[ErrorCategory, str]:
    """
    Translate a raw failure into a category and a message safe to show users.

    Args:
        exc: Any exception raised while serving a request

    Returns:
        Tuple of (category, user-facing message)
    """
    category = categorize_error(exc)
    return category, ERROR_MESSAGES[category]


def _describe_stream_error(exc: BaseException) -> str:
    return translate_error(exc)[1]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ChatOptions:
    """Per-request chat options."""

    personality: str | None = None


class Orchestrator:
    """
    Coordinates completion providers, the demo fallback and the stream relay.

    One-shot operations return an OrchestratorResult and never raise; the
    streaming operations report failures in-band as an `error` event.
    """

    def __init__(
        self,
        settings: Settings,
        provider: CompletionProvider | None,
        demo: DemoFallback,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            settings: Application settings
            provider: Active completion provider, or None for demo mode
            demo: Demo fallback; its cursor is shared by every request
        """
        self.settings = settings
        self.provider = provider
        self.demo = demo
        self.relay = StreamRelay(describe_error=_describe_stream_error)
        logger.info(
            "Orchestrator initialized",
            extra={
                "provider": provider.name if provider else None,
                "model": provider.model if provider else DEMO_MODEL_ID,
                "demo_mode": self.demo_mode,
            },
        )

    @property
    def demo_mode(self) -> bool:
        return self.provider is None

    def list_models(self) -> list[ModelInfo]:
        """Catalogue of the active provider, or the demo model."""
        if self.provider is None:
            return self.demo.list_models()
        return self.provider.list_models()

    def _require_provider(self, operation: str) -> CompletionProvider:
        if self.provider is None:
            raise ConfigurationError(
                f"No API key configured for {operation}",
                error_code="PROVIDER_NOT_CONFIGURED",
            )
        return self.provider

    def _chat_request(
        self,
        messages: list[Message],
        personality: PersonalityConfig,
        streaming: bool,
    ) -> CompletionRequest:
        return CompletionRequest(
            messages=messages,
            system_prompt=personality.system_prompt,
            temperature=personality.creativity,
            max_tokens=self.settings.default_max_tokens,
            streaming=streaming,
        )

    def _failure(self, code: str, exc: Exception, operation: str) -> OrchestratorResult:
        category, message = translate_error(exc)
        logger.error(
            f"{operation} request failed",
            extra={
                "operation": operation,
                "error_code": code,
                "category": category.value,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        details = str(exc) if self.settings.environment == "development" else None
        return OrchestratorResult.failed(
            ErrorDetail(code=code, message=message, category=category, details=details)
        )

    async def process_chat(
        self,
        messages: list[Message],
        options: ChatOptions | None = None,
    ) -> OrchestratorResult:
        """
        Produce one assistant reply for a conversation.

        Args:
            messages: Conversation so far, oldest first
            options: Personality selection

        Returns:
            Result carrying the assistant message, or a CHAT_ERROR failure
        """
        options = options or ChatOptions()
        try:
            personality = get_personality(options.personality)

            if self.provider is None:
                content = await self.demo.generate_once(messages)
                message = create_message(content, metadata={"model": DEMO_MODEL_ID, "isDemo": True})
                logger.info("Chat served in demo mode", extra={"message_count": len(messages)})
                return OrchestratorResult.ok(
                    message=message,
                    metadata={
                        "timestamp": _timestamp(),
                        "personality": personality.id,
                        "demoMode": True,
                    },
                )

            request = self._chat_request(messages, personality, streaming=False)
            response = await self.provider.complete_once(request)
            message = create_message(
                response.content,
                metadata={
                    "model": response.model_id,
                    "tokens": response.token_usage.total,
                    "latency": response.latency_ms,
                },
            )
            logger.info(
                "Chat completed",
                extra={
                    "model": response.model_id,
                    "total_tokens": response.token_usage.total,
                    "latency_ms": response.latency_ms,
                },
            )
            return OrchestratorResult.ok(
                message=message,
                metadata={
                    "timestamp": _timestamp(),
                    "personality": personality.id,
                    "demoMode": False,
                },
            )
        except Exception as exc:
            return self._failure("CHAT_ERROR", exc, operation="chat")

    def _open_chat_source(
        self,
        messages: list[Message],
        options: ChatOptions,
    ) -> AsyncIterator[str]:
        personality = get_personality(options.personality)
        if self.provider is None:
            logger.info("Chat stream served in demo mode", extra={"message_count": len(messages)})
            return self.demo.generate_streaming(messages)
        return self.provider.stream_tokens(self._chat_request(messages, personality, streaming=True))

    def stream_chat(
        self,
        messages: list[Message],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream one assistant reply as relay events."""
        return self.relay.events(partial(self._open_chat_source, messages, options or ChatOptions()))

    def stream_frames(
        self,
        messages: list[Message],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[str]:
        """Stream one assistant reply as encoded SSE frames."""
        return self.relay.frames(partial(self._open_chat_source, messages, options or ChatOptions()))

    async def process_chat_stream(
        self,
        messages: list[Message],
        callbacks: StreamCallbacks,
        options: ChatOptions | None = None,
    ) -> None:
        """
        Stream one assistant reply into callbacks.

        Drives `on_start`, `on_chunk` per fragment, then exactly one of
        `on_complete` or `on_error`. A callback that raises ends the stream:
        the failure is logged as an abort and no further callbacks run.
        """
        events = self.stream_chat(messages, options)
        try:
            async for event in events:
                try:
                    await self._dispatch(event, callbacks)
                except Exception as exc:
                    aborted = StreamAbortedError(f"Stream callback failed: {exc}")
                    logger.error(
                        aborted.message,
                        extra={
                            "error_code": aborted.error_code,
                            "event_type": event.type,
                            "error_type": type(exc).__name__,
                        },
                    )
                    return
        finally:
            await events.aclose()  # type: ignore[attr-defined]

    @staticmethod
    async def _dispatch(event: StreamEvent, callbacks: StreamCallbacks) -> None:
        if isinstance(event, StartEvent):
            await invoke(callbacks.on_start)
        elif isinstance(event, ChunkEvent):
            await invoke(callbacks.on_chunk, event.content)
        elif isinstance(event, CompleteEvent):
            await invoke(callbacks.on_complete, event.content)
        elif isinstance(event, ErrorEvent):
            await invoke(callbacks.on_error, StreamError(event.message))

    async def process_analysis(
        self,
        content: str,
        analysis_type: str = "general",
    ) -> OrchestratorResult:
        """
        Run a deep analysis of free-form content.

        Requires a configured provider; demo mode reports a configuration
        failure.
        """
        try:
            provider = self._require_provider("analysis")
            request = CompletionRequest(
                messages=[create_message(content, role=MessageRole.USER)],
                system_prompt=ANALYSIS_SYSTEM_PROMPT.format(analysis_type=analysis_type),
                temperature=self.settings.analysis_temperature,
                max_tokens=self.settings.default_max_tokens,
            )
            response = await provider.complete_once(request)
            logger.info(
                "Analysis completed",
                extra={
                    "analysis_type": analysis_type,
                    "model": response.model_id,
                    "total_tokens": response.token_usage.total,
                },
            )
            return OrchestratorResult.ok(
                content=response.content,
                metadata={
                    "analysisType": analysis_type,
                    "model": response.model_id,
                    "tokens": response.token_usage.total,
                    "latency": response.latency_ms,
                    "timestamp": _timestamp(),
                },
            )
        except Exception as exc:
            return self._failure("ANALYSIS_ERROR", exc, operation="analysis")

    async def process_voice_request(
        self,
        message: str,
        personality: str | None = None,
    ) -> OrchestratorResult:
        """
        Produce a reply formatted for speech rather than reading.

        Requires a configured provider; demo mode reports a configuration
        failure.
        """
        try:
            provider = self._require_provider("voice")
            config = get_personality(personality)
            request = CompletionRequest(
                messages=[create_message(message, role=MessageRole.USER)],
                system_prompt=f"{config.system_prompt}\n\n{VOICE_SYSTEM_PROMPT}",
                temperature=config.creativity,
                max_tokens=self.settings.default_max_tokens,
            )
            response = await provider.complete_once(request)
            reply = create_message(
                response.content,
                metadata={
                    "model": response.model_id,
                    "tokens": response.token_usage.total,
                    "latency": response.latency_ms,
                },
            )
            return OrchestratorResult.ok(
                message=reply,
                content=response.content,
                metadata={
                    "timestamp": _timestamp(),
                    "personality": config.id,
                    "optimizedForVoice": True,
                },
            )
        except Exception as exc:
            return self._failure("VOICE_ERROR", exc, operation="voice")

    async def health_check(self) -> HealthReport:
        """
        Probe the chat path with a synthetic request.

        In demo mode the probe uses a throwaway cursor and skips the simulated
        latency; the shared cursor is left untouched.
        """
        probe = [create_message(HEALTH_CHECK_PROMPT, role=MessageRole.USER)]
        try:
            if self.provider is None:
                healthy = bool(self.demo.select_response(probe, cursor=ResponseCursor()))
            else:
                result = await self.process_chat(probe)
                healthy = result.success
        except Exception as exc:
            logger.error(
                "Health probe raised",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            healthy = False

        return HealthReport(healthy=healthy, services={"chat": healthy, "streaming": healthy})

    async def aclose(self) -> None:
        """Release provider network resources."""
        if self.provider is not None:
            await self.provider.aclose()

