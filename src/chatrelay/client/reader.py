"""
Client-side reader for relay event streams.

Turns the raw text of a `text/event-stream` body back into callbacks. The
reader guarantees that every stream ends in exactly one of `on_complete` or
`on_error`, unless the caller cancels it first.
"""

import asyncio
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from typing import Literal

from chatrelay.callbacks import StreamCallbacks, invoke
from chatrelay.models.events import (
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StreamEvent,
    TerminalEvent,
    parse_frame_payload,
)
from chatrelay.sse import SSELineDecoder
from chatrelay.utils.errors import RelayServiceError, StreamAbortedError, StreamError
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

OutcomeStatus = Literal["completed", "error", "aborted", "cancelled"]


@dataclass
class StreamOutcome:
    """How a consumed stream ended."""

    status: OutcomeStatus
    content: str = ""
    error: RelayServiceError | None = None


class StreamReader:
    """Decodes relay frames and drives stream callbacks."""

    async def consume(
        self,
        chunks: AsyncIterable[str],
        callbacks: StreamCallbacks,
        cancel_event: asyncio.Event | None = None,
    ) -> StreamOutcome:
        """
        Read a framed stream to its end.

        Args:
            chunks: Response body as text, split at arbitrary positions
            callbacks: Receives `on_chunk`, then `on_complete` or `on_error`
            cancel_event: When set, reading stops without a terminal callback

        Returns:
            The outcome; `content` is the complete text on success and the
            partial text otherwise
        """
        decoder = SSELineDecoder()
        buffer: list[str] = []
        iterator = aiter(chunks)

        try:
            while True:
                try:
                    text = await self._read(iterator, cancel_event)
                except StopAsyncIteration:
                    break
                if text is None:
                    return self._cancelled(buffer)
                for payload in decoder.feed(text):
                    outcome = await self._handle(payload, buffer, callbacks)
                    if outcome is not None:
                        return outcome
                    if cancel_event is not None and cancel_event.is_set():
                        return self._cancelled(buffer)
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        for payload in decoder.close():
            outcome = await self._handle(payload, buffer, callbacks)
            if outcome is not None:
                return outcome

        error = StreamAbortedError()
        logger.warning(
            "Stream ended without a terminal signal",
            extra={"error_code": error.error_code, "chunk_count": len(buffer)},
        )
        await invoke(callbacks.on_error, error)
        return StreamOutcome(status="aborted", content="".join(buffer), error=error)

    @staticmethod
    async def _read(
        iterator: AsyncIterator[str],
        cancel_event: asyncio.Event | None,
    ) -> str | None:
        """
        Wait for the next chunk, or for the caller to cancel.

        Returns None on cancellation; the pending read is cancelled and has
        finished before this returns, so the iterator can be closed.

        Raises:
            StopAsyncIteration: When the input is exhausted
        """
        if cancel_event is None:
            return await anext(iterator)
        if cancel_event.is_set():
            return None

        read = asyncio.ensure_future(anext(iterator))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({read, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pending = {task for task in (read, waiter) if not task.done()}
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending)

        if cancel_event.is_set() or read.cancelled():
            return None
        return read.result()

    @staticmethod
    def _cancelled(buffer: list[str]) -> StreamOutcome:
        logger.info("Stream cancelled by caller", extra={"chunk_count": len(buffer)})
        return StreamOutcome(status="cancelled", content="".join(buffer))

    @staticmethod
    def _decode(payload: str) -> StreamEvent | None:
        try:
            return parse_frame_payload(payload)
        except ValueError as exc:
            logger.warning(
                "Skipping malformed stream frame",
                extra={"error": str(exc), "payload": payload[:200]},
            )
            return None

    async def _handle(
        self,
        payload: str,
        buffer: list[str],
        callbacks: StreamCallbacks,
    ) -> StreamOutcome | None:
        event = self._decode(payload)

        if isinstance(event, ChunkEvent):
            buffer.append(event.content)
            await invoke(callbacks.on_chunk, event.content)
            return None

        if isinstance(event, CompleteEvent):
            await invoke(callbacks.on_complete, event.content)
            return StreamOutcome(status="completed", content=event.content)

        if isinstance(event, TerminalEvent):
            content = "".join(buffer)
            await invoke(callbacks.on_complete, content)
            return StreamOutcome(status="completed", content=content)

        if isinstance(event, ErrorEvent):
            error = StreamError(event.message)
            await invoke(callbacks.on_error, error)
            return StreamOutcome(status="error", content="".join(buffer), error=error)

        # `start` frames and malformed frames carry nothing to deliver
        return None
