"""
OpenAI chat completions provider.

Talks to the REST API directly with httpx: one-shot JSON calls and chunked SSE
streams whose `data:` frames carry `choices[0].delta.content` deltas and end
with a `[DONE]` sentinel.
"""

import json
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from chatrelay.models.events import DONE_SENTINEL
from chatrelay.models.messages import (
    CompletionRequest,
    CompletionResponse,
    ModelInfo,
    TokenUsage,
)
from chatrelay.providers.base import CompletionProvider
from chatrelay.sse import SSELineDecoder
from chatrelay.utils.errors import (
    ProtocolError,
    ProviderConnectionError,
    ProviderTimeoutError,
    UpstreamError,
)
from chatrelay.utils.logging import get_logger
from chatrelay.utils.request_context import get_request_id

logger = get_logger(__name__)


class OpenAIProvider(CompletionProvider):
    """Completion provider for the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        stream_timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the provider and its HTTP client.

        Args:
            api_key: OpenAI API key
            model: Default model ID
            base_url: Base URL of the REST API
            timeout: Timeout in seconds for one-shot calls
            stream_timeout: Timeout in seconds for streaming calls
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(name="openai", model=model)
        self._stream_timeout = httpx.Timeout(stream_timeout)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        logger.info(
            "OpenAI provider created",
            extra={"provider": self.name, "model": model, "base_url": base_url},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _build_payload(self, request: CompletionRequest, stream: bool) -> dict[str, Any]:
        messages = [{"role": message.role, "content": message.content} for message in request.messages]
        if request.system_prompt:
            messages.insert(0, {"role": "system", "content": request.system_prompt})
        return {
            "model": self.model,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": stream,
        }

    def _extra_headers(self) -> dict[str, str]:
        request_id = get_request_id()
        return {"X-Request-ID": request_id} if request_id else {}

    @asynccontextmanager
    async def _transport_errors(self) -> AsyncIterator[None]:
        """Translate httpx transport exceptions into the provider error taxonomy."""
        try:
            yield
        except httpx.TimeoutException as exc:
            logger.warning(
                "OpenAI request timed out",
                extra={"provider": self.name, "error_type": type(exc).__name__},
            )
            raise ProviderTimeoutError(self.name, str(exc) or "request timed out") from exc
        except httpx.TransportError as exc:
            logger.warning(
                "OpenAI connection failed",
                extra={"provider": self.name, "error": str(exc), "error_type": type(exc).__name__},
            )
            raise ProviderConnectionError(self.name, str(exc) or type(exc).__name__) from exc

    async def complete_once(self, request: CompletionRequest) -> CompletionResponse:
        payload = self._build_payload(request, stream=False)
        start_time = time.perf_counter()

        logger.debug(
            "Calling OpenAI chat completions",
            extra={"model": self.model, "message_count": len(request.messages)},
        )
        async with self._transport_errors():
            response = await self._client.post(
                "/chat/completions", json=payload, headers=self._extra_headers()
            )

        if response.is_error:
            logger.error(
                "OpenAI API error",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )
            raise UpstreamError(self.name, response.status_code, response.text)

        try:
            data = response.json()
            choice = data["choices"][0]
            content = choice["message"]["content"] or ""
            usage = data.get("usage") or {}
            token_usage = TokenUsage(
                prompt=usage.get("prompt_tokens", 0),
                completion=usage.get("completion_tokens", 0),
                total=usage.get("total_tokens", 0),
            )
            model_id = data.get("model", self.model)
            finish_reason = choice.get("finish_reason")
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProtocolError(self.name, f"unexpected completion body: {exc}") from exc

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "OpenAI completion received",
            extra={
                "model": model_id,
                "total_tokens": token_usage.total,
                "latency_ms": latency_ms,
            },
        )
        return CompletionResponse(
            content=content,
            model_id=model_id,
            token_usage=token_usage,
            latency_ms=latency_ms,
            finish_reason=finish_reason,
        )

    async def stream_tokens(self, request: CompletionRequest) -> AsyncIterator[str]:
        payload = self._build_payload(request, stream=True)
        decoder = SSELineDecoder()
        delta_count = 0

        async with self._transport_errors():
            async with self._client.stream(
                "POST",
                "/chat/completions",
                json=payload,
                headers=self._extra_headers(),
                timeout=self._stream_timeout,
            ) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.error(
                        "OpenAI streaming API error",
                        extra={"status_code": response.status_code, "body": body[:500]},
                    )
                    raise UpstreamError(self.name, response.status_code, body)

                async for data in self._frame_payloads(response, decoder):
                    if data.strip() == DONE_SENTINEL:
                        logger.debug(
                            "OpenAI stream finished",
                            extra={"model": self.model, "delta_count": delta_count},
                        )
                        return
                    delta = self._parse_delta(data)
                    if delta:
                        delta_count += 1
                        yield delta

        logger.debug(
            "OpenAI stream closed without sentinel",
            extra={"model": self.model, "delta_count": delta_count},
        )

    @staticmethod
    async def _frame_payloads(
        response: httpx.Response, decoder: SSELineDecoder
    ) -> AsyncIterator[str]:
        async for text in response.aiter_text():
            for data in decoder.feed(text):
                yield data
        for data in decoder.close():
            yield data

    def _parse_delta(self, data: str) -> str | None:
        """Extract the text delta from one stream frame, or None for content-free frames."""
        try:
            chunk = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ProtocolError(self.name, f"invalid stream frame: {exc.msg}") from exc
        if not isinstance(chunk, dict):
            raise ProtocolError(self.name, "stream frame is not a JSON object")

        error = chunk.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise UpstreamError(self.name, None, message)

        choices = chunk.get("choices") or []
        if not choices:
            return None
        try:
            delta = choices[0].get("delta") or {}
            content = delta.get("content")
        except AttributeError as exc:
            raise ProtocolError(self.name, "malformed choices in stream frame") from exc
        if content is not None and not isinstance(content, str):
            raise ProtocolError(self.name, "delta content is not text")
        return content or None

    def list_models(self) -> list[ModelInfo]:
        return [
            ModelInfo(
                id="gpt-4-turbo-preview",
                name="GPT-4 Turbo",
                provider=self.name,
                capabilities=["text-generation", "code-generation", "function-calling", "streaming"],
                context_window=128000,
                max_output_tokens=4096,
            ),
            ModelInfo(
                id="gpt-3.5-turbo",
                name="GPT-3.5 Turbo",
                provider=self.name,
                capabilities=["text-generation", "code-generation", "streaming"],
                context_window=16385,
                max_output_tokens=4096,
            ),
        ]
