"""
Stream relay: token source in, framed event stream out.

A token source is any async iterator of text fragments (a live provider
stream or the demo fallback). The relay republishes it as
`start, chunk*, complete, terminal` or `start, chunk*, error`, and always
closes the source, whether the stream succeeds, fails, or the consumer walks
away mid-stream.
"""

import asyncio
from collections.abc import AsyncIterator, Callable

from chatrelay.models.events import (
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StartEvent,
    StreamEvent,
    TerminalEvent,
    encode_frame,
)
from chatrelay.utils.errors import StreamAbortedError
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

SourceFactory = Callable[[], AsyncIterator[str]]
ErrorDescriber = Callable[[BaseException], str]


def _default_describe(exc: BaseException) -> str:
    return str(exc) or "Stream error"


async def _close_source(source: AsyncIterator[str]) -> None:
    aclose = getattr(source, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as exc:
        logger.warning(
            "Token source raised while closing",
            extra={"error": str(exc), "error_type": type(exc).__name__},
        )


class StreamRelay:
    """
    Republishes a token source as stream events.

    Stateless apart from its error describer, so one instance serves any
    number of concurrent streams.
    """

    def __init__(self, describe_error: ErrorDescriber | None = None) -> None:
        """
        Args:
            describe_error: Turns a source failure into the `error` event message
        """
        self._describe_error = describe_error or _default_describe

    async def events(self, open_source: SourceFactory) -> AsyncIterator[StreamEvent]:
        """
        Relay a token source as events.

        The source is opened inside the relay so that failures while building
        it are reported through the stream like any other failure.

        Args:
            open_source: Zero-argument callable returning the token source

        Yields:
            `start`, one `chunk` per non-empty fragment, then either `complete`
            and `terminal`, or a single `error`
        """
        yield StartEvent()

        buffer: list[str] = []
        source: AsyncIterator[str] | None = None
        try:
            source = open_source()
            async for fragment in source:
                if not fragment:
                    continue
                buffer.append(fragment)
                yield ChunkEvent(content=fragment)
        except Exception as exc:
            logger.error(
                "Token source failed mid-stream",
                extra={
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "chunk_count": len(buffer),
                },
            )
            yield ErrorEvent(message=self._describe_error(exc))
            return
        finally:
            if source is not None:
                await _close_source(source)

        content = "".join(buffer)
        logger.debug(
            "Token source completed",
            extra={"chunk_count": len(buffer), "content_length": len(content)},
        )
        yield CompleteEvent(content=content)
        yield TerminalEvent()

    async def frames(self, open_source: SourceFactory) -> AsyncIterator[str]:
        """
        Relay a token source as encoded SSE frames.

        Consumer disconnects surface here as task cancellation or generator
        close; they are logged as stream aborts and end the relay without
        emitting anything further.
        """
        events = self.events(open_source)
        frame_count = 0
        try:
            async for event in events:
                yield encode_frame(event)
                frame_count += 1
        except (asyncio.CancelledError, GeneratorExit):
            aborted = StreamAbortedError("Consumer disconnected mid-stream")
            logger.info(
                aborted.message,
                extra={"error_code": aborted.error_code, "frame_count": frame_count},
            )
            raise
        finally:
            await events.aclose()
