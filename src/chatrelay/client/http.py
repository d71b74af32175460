"""
Async HTTP client for the chat relay API.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any

import httpx

from chatrelay.callbacks import StreamCallbacks, invoke
from chatrelay.client.reader import StreamOutcome, StreamReader
from chatrelay.models.api import ErrorCategory, ErrorDetail, OrchestratorResult
from chatrelay.models.messages import Message
from chatrelay.orchestrator import ERROR_MESSAGES
from chatrelay.utils.errors import StreamError
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


@dataclass
class SpeechReply:
    """Result of a TTS request: vendor audio, or instructions for browser speech."""

    audio: bytes | None = None
    use_browser_tts: bool = False
    payload: dict[str, Any] = field(default_factory=dict)


def _network_failure(exc: httpx.HTTPError) -> OrchestratorResult:
    return OrchestratorResult.failed(
        ErrorDetail(
            code="NETWORK_ERROR",
            message=ERROR_MESSAGES[ErrorCategory.NETWORK],
            category=ErrorCategory.NETWORK,
            details=str(exc),
        )
    )


def _error_detail(response: httpx.Response, default_code: str) -> ErrorDetail:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    try:
        category = ErrorCategory(body.get("category", ErrorCategory.GENERIC.value))
    except ValueError:
        category = ErrorCategory.GENERIC
    return ErrorDetail(
        code=body.get("code", default_code),
        message=body.get("error") or f"HTTP {response.status_code}",
        category=category,
        details=body.get("details"),
    )


class ChatClient:
    """
    Client for the `/api` endpoints.

    One-shot calls return OrchestratorResult values instead of raising;
    streaming calls report through StreamCallbacks.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Server root, without the `/api` prefix
            timeout: Timeout in seconds for every call
            transport: Optional httpx transport (tests use ASGITransport)
        """
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self.reader = StreamReader()

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _chat_payload(
        messages: list[Message],
        personality: str | None,
        streaming: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "messages": [message.model_dump(mode="json") for message in messages],
            "streaming": streaming,
        }
        if personality:
            payload["personality"] = personality
        return payload

    async def stream_chat_message(
        self,
        messages: list[Message],
        callbacks: StreamCallbacks,
        personality: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> StreamOutcome:
        """
        Stream a chat reply into callbacks.

        `on_start` fires once the server accepts the request. The connection is
        released on every exit path, including cancellation of the calling task.
        """
        payload = self._chat_payload(messages, personality, streaming=True)
        headers = {"Accept": "text/event-stream", "X-Request-ID": f"req_{uuid.uuid4().hex[:12]}"}

        try:
            async with self._client.stream(
                "POST", "/api/chat", json=payload, headers=headers
            ) as response:
                if response.is_error:
                    await response.aread()
                    detail = _error_detail(response, "HTTP_ERROR")
                    error = StreamError(detail.message, error_code=detail.code)
                    logger.warning(
                        "Chat stream rejected",
                        extra={"status_code": response.status_code, "error_code": error.error_code},
                    )
                    await invoke(callbacks.on_error, error)
                    return StreamOutcome(status="error", error=error)

                await invoke(callbacks.on_start)
                return await self.reader.consume(response.aiter_text(), callbacks, cancel_event)
        except httpx.HTTPError as exc:
            error = StreamError(ERROR_MESSAGES[ErrorCategory.NETWORK], error_code="NETWORK_ERROR")
            logger.error(
                "Chat stream transport failure",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            await invoke(callbacks.on_error, error)
            return StreamOutcome(status="error", error=error)

    async def send_chat_message(
        self,
        messages: list[Message],
        personality: str | None = None,
    ) -> OrchestratorResult:
        """Request a complete chat reply."""
        payload = self._chat_payload(messages, personality, streaming=False)
        try:
            response = await self._client.post("/api/chat", json=payload)
        except httpx.HTTPError as exc:
            return _network_failure(exc)

        if response.is_error:
            return OrchestratorResult.failed(_error_detail(response, "CHAT_ERROR"))
        body = response.json()
        return OrchestratorResult.ok(
            message=Message.model_validate(body["message"]),
            metadata=body.get("metadata", {}),
        )

    async def send_analysis_request(
        self,
        content: str,
        analysis_type: str = "general",
    ) -> OrchestratorResult:
        """Request a deep analysis of `content`."""
        payload = {"content": content, "analysisType": analysis_type}
        try:
            response = await self._client.post("/api/analysis", json=payload)
        except httpx.HTTPError as exc:
            return _network_failure(exc)

        if response.is_error:
            return OrchestratorResult.failed(_error_detail(response, "ANALYSIS_ERROR"))
        body = response.json()
        return OrchestratorResult.ok(content=body["content"], metadata=body.get("metadata", {}))

    async def synthesize_speech(
        self,
        text: str,
        voice: str | None = None,
        settings: dict[str, float] | None = None,
    ) -> SpeechReply:
        """
        Request speech audio for `text`.

        Raises:
            httpx.HTTPStatusError: If the server rejects the request
        """
        payload: dict[str, Any] = {"text": text}
        if voice:
            payload["voice"] = voice
        if settings:
            payload["settings"] = settings

        response = await self._client.post("/api/voice/tts", json=payload)
        response.raise_for_status()
        if response.headers.get("content-type", "").startswith("audio/"):
            return SpeechReply(audio=response.content)
        body = response.json()
        return SpeechReply(use_browser_tts=bool(body.get("useBrowserTTS")), payload=body)
