"""
Demo fallback provider.

Answers with canned text when no provider credentials are configured, in both
one-shot and streaming form, so the chat UI behaves the same with or without
API keys.
"""

import asyncio
from collections.abc import AsyncIterator, Sequence

from chatrelay.models.messages import (
    CompletionRequest,
    CompletionResponse,
    Message,
    ModelInfo,
    TokenUsage,
    last_user_content,
)
from chatrelay.providers.base import CompletionProvider
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_MODEL_ID = "demo-mode"

DEMO_RESPONSES: tuple[str, ...] = (
    "Hello! I'm the UniWeb AI assistant. I'm currently running in demo mode. To enable real "
    "AI responses, add your OPENAI_API_KEY to the environment variables.",
    "I understand you're testing the platform. The streaming feature you're seeing is working "
    "perfectly! All animations, voice, and avatar features are production-ready.",
    "This is a fully functional AI platform with:\n\n"
    "• Real-time streaming chat\n"
    "• Voice synthesis\n"
    "• Animated avatar\n"
    "• Multiple AI personalities\n"
    "• Deep analysis mode\n\n"
    "Just add your OpenAI API key to unlock real AI intelligence!",
    "Great question! The architecture includes:\n\n"
    "1. AI Orchestrator for coordination\n"
    "2. Modular provider system\n"
    "3. Streaming SSE responses\n"
    "4. Complete error handling\n"
    "5. Production-ready deployment\n\n"
    "Everything is built and ready to go!",
    "I can help with that! The platform supports:\n\n"
    "✓ Chat with streaming\n"
    "✓ Voice input/output\n"
    "✓ Avatar animations\n"
    "✓ Dark mode design\n"
    "✓ Real-time updates\n\n"
    "Add OPENAI_API_KEY to enable full AI capabilities.",
)

# Checked in order against the lower-cased last user message; first hit wins.
DEMO_TRIGGERS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("hello", "hi"), 0),
    (("test", "demo"), 1),
    (("feature", "what can"), 2),
    (("how", "architecture"), 3),
)


class ResponseCursor:
    """
    Round-robin position over the demo response pool.

    `advance` has no suspension point, so calls made from one event loop are
    serialized and each receives its own slot. The cursor is shared by every
    request served by the owning orchestrator.
    """

    def __init__(self, start: int = 0) -> None:
        self.position = start

    def advance(self, pool_size: int) -> int:
        """Return the current slot and move to the next one."""
        index = self.position % pool_size
        self.position += 1
        return index


def split_fragments(text: str) -> list[str]:
    """
    Split text into word fragments on single spaces.

    Every fragment but the last keeps its trailing space, so joining the
    fragments gives back the original text exactly.
    """
    words = text.split(" ")
    return [word + " " for word in words[:-1]] + [words[-1]]


class DemoFallback(CompletionProvider):
    """Canned-response provider used in demo mode."""

    def __init__(
        self,
        cursor: ResponseCursor | None = None,
        initial_delay: float = 0.5,
        fragment_delay: float = 0.05,
        responses: Sequence[str] = DEMO_RESPONSES,
    ) -> None:
        """
        Initialize the demo fallback.

        Args:
            cursor: Round-robin state; a fresh cursor when omitted
            initial_delay: Seconds to wait before any response text
            fragment_delay: Seconds to wait after each streamed fragment
            responses: Response pool indexed by the trigger table
        """
        super().__init__(name="demo", model=DEMO_MODEL_ID)
        self.cursor = cursor or ResponseCursor()
        self.initial_delay = initial_delay
        self.fragment_delay = fragment_delay
        self.responses = tuple(responses)

    def select_response(
        self,
        messages: list[Message],
        cursor: ResponseCursor | None = None,
    ) -> str:
        """
        Pick the canned response for a conversation without waiting.

        Unmatched messages advance `cursor`, or the shared cursor when omitted.
        """
        last_message = last_user_content(messages).lower()
        for phrases, index in DEMO_TRIGGERS:
            if any(phrase in last_message for phrase in phrases):
                logger.debug("Demo trigger matched", extra={"response_index": index})
                return self.responses[index]

        index = (cursor or self.cursor).advance(len(self.responses))
        logger.debug("Demo round-robin response", extra={"response_index": index})
        return self.responses[index]

    async def generate_once(self, messages: list[Message]) -> str:
        """Return the full canned response after the simulated latency."""
        if self.initial_delay:
            await asyncio.sleep(self.initial_delay)
        return self.select_response(messages)

    async def generate_streaming(self, messages: list[Message]) -> AsyncIterator[str]:
        """
        Yield the canned response word by word.

        The response is chosen once, before the first fragment, so the cursor
        moves at most once per stream.
        """
        response = self.select_response(messages)
        if self.initial_delay:
            await asyncio.sleep(self.initial_delay)
        for fragment in split_fragments(response):
            yield fragment
            if self.fragment_delay:
                await asyncio.sleep(self.fragment_delay)

    async def complete_once(self, request: CompletionRequest) -> CompletionResponse:
        content = await self.generate_once(request.messages)
        return CompletionResponse(
            content=content,
            model_id=DEMO_MODEL_ID,
            token_usage=TokenUsage(),
            latency_ms=int(self.initial_delay * 1000),
        )

    def stream_tokens(self, request: CompletionRequest) -> AsyncIterator[str]:
        return self.generate_streaming(request.messages)

    def list_models(self) -> list[ModelInfo]:
        return [
            ModelInfo(
                id=DEMO_MODEL_ID,
                name="Demo Mode",
                provider=self.name,
                capabilities=["text-generation", "streaming"],
            )
        ]
