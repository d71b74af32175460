"""
Completion provider interface.

Every vendor integration (and the demo fallback) implements the same
capability set, so the orchestrator and the relay never depend on a vendor.
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable

from chatrelay.models.messages import CompletionRequest, CompletionResponse, ModelInfo

TokenCallback = Callable[[str], Awaitable[None] | None]


class CompletionProvider(ABC):
    """
    Abstract base class for completion providers.

    Implementations hold only static configuration (API key, model ID) set at
    construction; per-call state lives in local variables.
    """

    def __init__(self, name: str, model: str) -> None:
        """
        Initialize the provider.

        Args:
            name: Provider name used in logs and error messages
            model: Default model ID for requests
        """
        self.name = name
        self.model = model

    @abstractmethod
    async def complete_once(self, request: CompletionRequest) -> CompletionResponse:
        """
        Run a one-shot completion.

        Raises:
            UpstreamError: On non-2xx responses or transport failures
            ProtocolError: If the response body does not match the vendor schema
        """

    @abstractmethod
    def stream_tokens(self, request: CompletionRequest) -> AsyncIterator[str]:
        """
        Stream text deltas as they arrive.

        Implementations are async generators; closing the generator releases
        the underlying HTTP response.

        Raises:
            UpstreamError: On non-2xx responses or transport failures
            ProtocolError: If a frame cannot be parsed
        """

    async def complete_streaming(self, request: CompletionRequest, on_token: TokenCallback) -> None:
        """
        Push form of `stream_tokens`: call `on_token(delta)` for each delta.

        The callback may be a plain function or a coroutine function; it is
        awaited before the next delta is read.
        """
        tokens = self.stream_tokens(request)
        try:
            async for token in tokens:
                result = on_token(token)
                if inspect.isawaitable(result):
                    await result
        finally:
            await tokens.aclose()  # type: ignore[attr-defined]

    @abstractmethod
    def list_models(self) -> list[ModelInfo]:
        """Static catalogue of models this provider can serve."""

    async def aclose(self) -> None:  # noqa: B027
        """Release network resources. Default is a no-op."""
