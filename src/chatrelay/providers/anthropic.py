"""
Anthropic Messages API provider built on the AsyncAnthropic client.
"""

import time
from collections.abc import AsyncIterator
from typing import Any

from anthropic import AnthropicError, AsyncAnthropic

from chatrelay.models.messages import (
    CompletionRequest,
    CompletionResponse,
    MessageRole,
    ModelInfo,
    TokenUsage,
)
from chatrelay.providers.base import CompletionProvider
from chatrelay.utils.anthropic_errors import map_anthropic_exception
from chatrelay.utils.errors import ProtocolError
from chatrelay.utils.logging import get_logger
from chatrelay.utils.request_context import get_request_id

logger = get_logger(__name__)


class AnthropicProvider(CompletionProvider):
    """
    Completion provider for Claude models.

    System prompts and `system`-role messages are folded into the `system`
    parameter; every other message becomes a `user` or `assistant` turn.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        client: AsyncAnthropic | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            api_key: Anthropic API key
            model: Default model ID
            timeout: Request timeout in seconds
            client: Optional pre-built client (used by tests)
        """
        super().__init__(name="anthropic", model=model)
        # Retries are disabled: a failed upstream call surfaces immediately
        self._client = client or AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        logger.info(
            "Anthropic provider created",
            extra={"provider": self.name, "model": model},
        )

    async def aclose(self) -> None:
        await self._client.close()

    def _build_kwargs(self, request: CompletionRequest) -> dict[str, Any]:
        system_parts = [request.system_prompt] if request.system_prompt else []
        messages: list[dict[str, str]] = []
        for message in request.messages:
            if message.role == MessageRole.SYSTEM.value:
                system_parts.append(message.content)
                continue
            role = "assistant" if message.role == MessageRole.ASSISTANT.value else "user"
            messages.append({"role": role, "content": message.content})

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": request.max_tokens,
            "temperature": min(request.temperature, 1.0),
            "messages": messages,
        }
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)
        request_id = get_request_id()
        if request_id:
            kwargs["extra_headers"] = {"X-Request-ID": request_id}
        return kwargs

    async def complete_once(self, request: CompletionRequest) -> CompletionResponse:
        kwargs = self._build_kwargs(request)
        start_time = time.perf_counter()

        try:
            response = await self._client.messages.create(**kwargs)
        except AnthropicError as exc:
            mapped = map_anthropic_exception(exc)
            logger.error(
                "Anthropic API call failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            raise mapped from exc

        try:
            content = "".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            )
            token_usage = TokenUsage(
                prompt=response.usage.input_tokens,
                completion=response.usage.output_tokens,
                total=response.usage.input_tokens + response.usage.output_tokens,
            )
        except (AttributeError, TypeError) as exc:
            raise ProtocolError(self.name, f"unexpected message body: {exc}") from exc

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "Anthropic completion received",
            extra={
                "model": response.model,
                "total_tokens": token_usage.total,
                "latency_ms": latency_ms,
            },
        )
        return CompletionResponse(
            content=content,
            model_id=response.model,
            token_usage=token_usage,
            latency_ms=latency_ms,
            finish_reason=getattr(response, "stop_reason", None),
        )

    async def stream_tokens(self, request: CompletionRequest) -> AsyncIterator[str]:
        kwargs = self._build_kwargs(request)

        try:
            stream = await self._client.messages.create(**kwargs, stream=True)
        except AnthropicError as exc:
            raise map_anthropic_exception(exc) from exc

        delta_count = 0
        try:
            async for event in stream:
                if event.type == "content_block_delta":
                    text = getattr(event.delta, "text", None)
                    if text:
                        delta_count += 1
                        yield text
                elif event.type == "message_stop":
                    break
        except AnthropicError as exc:
            raise map_anthropic_exception(exc) from exc
        finally:
            await stream.close()

        logger.debug(
            "Anthropic stream finished",
            extra={"model": self.model, "delta_count": delta_count},
        )

    def list_models(self) -> list[ModelInfo]:
        return [
            ModelInfo(
                id=self.model,
                name="Claude",
                provider=self.name,
                capabilities=["text-generation", "code-generation", "vision", "streaming"],
                context_window=200000,
                max_output_tokens=8192,
            )
        ]
