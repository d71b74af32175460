"""
Unit tests for the client-side stream reader.

Frames are fed as arbitrary text chunks to mimic network reads.
"""

import asyncio
from collections.abc import AsyncIterator

import pytest

from chatrelay.callbacks import StreamCallbacks
from chatrelay.client import StreamReader
from chatrelay.utils.errors import StreamAbortedError, StreamError


async def chunks_of(*parts: str) -> AsyncIterator[str]:
    for part in parts:
        yield part


class Recorder:
    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.completed: list[str] = []
        self.errors: list[Exception] = []

    def callbacks(self) -> StreamCallbacks:
        return StreamCallbacks(
            on_chunk=self.chunks.append,
            on_complete=self.completed.append,
            on_error=self.errors.append,
        )


class TestTerminalSignals:
    """Test how each terminal signal ends the stream."""

    @pytest.mark.asyncio
    async def test_complete_uses_server_content(self) -> None:
        """Test on_complete receives the server's accumulated text."""
        recorder = Recorder()
        outcome = await StreamReader().consume(
            chunks_of(
                'data: {"type":"start"}\n\n',
                'data: {"type":"chunk","content":"Hi "}\n\n',
                'data: {"type":"chunk","content":"there"}\n\n',
                'data: {"type":"complete","content":"Hi there"}\n\n',
                "data: [DONE]\n\n",
            ),
            recorder.callbacks(),
        )

        assert recorder.chunks == ["Hi ", "there"]
        assert recorder.completed == ["Hi there"]
        assert recorder.errors == []
        assert outcome.status == "completed"
        assert outcome.content == "Hi there"

    @pytest.mark.asyncio
    async def test_bare_done_completes_with_local_buffer(self) -> None:
        """Test `[DONE]` without a complete frame completes with the buffered chunks."""
        recorder = Recorder()
        outcome = await StreamReader().consume(
            chunks_of('data: {"type":"chunk","content":"ab"}\n\ndata: [DONE]\n\n'),
            recorder.callbacks(),
        )
        assert recorder.completed == ["ab"]
        assert outcome.content == "ab"

    @pytest.mark.asyncio
    async def test_error_frame(self) -> None:
        """Test an error frame calls on_error once and stops reading."""
        recorder = Recorder()
        outcome = await StreamReader().consume(
            chunks_of(
                'data: {"type":"chunk","content":"part"}\n\n',
                'data: {"type":"error","message":"Request timed out. Please try again."}\n\n',
                'data: {"type":"chunk","content":"late"}\n\n',
            ),
            recorder.callbacks(),
        )

        assert recorder.chunks == ["part"]
        assert recorder.completed == []
        assert len(recorder.errors) == 1
        assert isinstance(recorder.errors[0], StreamError)
        assert recorder.errors[0].message == "Request timed out. Please try again."
        assert outcome.status == "error"

    @pytest.mark.asyncio
    async def test_nothing_after_complete(self) -> None:
        """Test frames after the terminal signal are not delivered."""
        recorder = Recorder()
        await StreamReader().consume(
            chunks_of(
                'data: {"type":"complete","content":"done"}\n\n'
                'data: {"type":"chunk","content":"extra"}\n\n'
                'data: {"type":"error","message":"late"}\n\n'
            ),
            recorder.callbacks(),
        )
        assert recorder.completed == ["done"]
        assert recorder.chunks == []
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_end_without_terminal_is_abort(self) -> None:
        """Test a stream that just stops reports StreamAbortedError."""
        recorder = Recorder()
        outcome = await StreamReader().consume(
            chunks_of('data: {"type":"chunk","content":"half"}\n\n'),
            recorder.callbacks(),
        )

        assert recorder.completed == []
        assert len(recorder.errors) == 1
        assert isinstance(recorder.errors[0], StreamAbortedError)
        assert outcome.status == "aborted"
        assert outcome.content == "half"


class TestFraming:
    """Test decoding robustness."""

    @pytest.mark.asyncio
    async def test_frames_split_across_chunks(self) -> None:
        """Test frames cut at arbitrary points are reassembled."""
        text = 'data: {"type":"chunk","content":"split"}\n\ndata: [DONE]\n\n'
        recorder = Recorder()
        await StreamReader().consume(chunks_of(*[text[i : i + 3] for i in range(0, len(text), 3)]), recorder.callbacks())
        assert recorder.chunks == ["split"]
        assert recorder.completed == ["split"]

    @pytest.mark.asyncio
    async def test_malformed_frame_skipped(self) -> None:
        """Test invalid JSON frames are logged and skipped."""
        recorder = Recorder()
        await StreamReader().consume(
            chunks_of(
                "data: {broken\n\n",
                'data: {"type":"chunk","content":"ok"}\n\n',
                "data: [DONE]\n\n",
            ),
            recorder.callbacks(),
        )
        assert recorder.chunks == ["ok"]
        assert recorder.completed == ["ok"]

    @pytest.mark.asyncio
    async def test_unterminated_final_frame_is_flushed(self) -> None:
        """Test a final `[DONE]` without trailing newline still completes."""
        recorder = Recorder()
        outcome = await StreamReader().consume(chunks_of("data: [DONE]"), recorder.callbacks())
        assert outcome.status == "completed"
        assert recorder.completed == [""]


class TestCancellation:
    """Test caller-initiated cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_event_stops_without_terminal_callback(self) -> None:
        """Test setting the cancel event stops reading silently."""
        cancel = asyncio.Event()
        recorder = Recorder()

        def on_chunk(chunk: str) -> None:
            recorder.chunks.append(chunk)
            cancel.set()

        callbacks = recorder.callbacks()
        callbacks.on_chunk = on_chunk

        outcome = await StreamReader().consume(
            chunks_of(
                'data: {"type":"chunk","content":"one"}\n\n',
                'data: {"type":"chunk","content":"two"}\n\n',
                "data: [DONE]\n\n",
            ),
            callbacks,
            cancel_event=cancel,
        )

        assert recorder.chunks == ["one"]
        assert recorder.completed == []
        assert recorder.errors == []
        assert outcome.status == "cancelled"
        assert outcome.content == "one"

    @pytest.mark.asyncio
    async def test_cancel_while_source_stalled(self) -> None:
        """Test cancelling during a stalled read returns promptly and closes the source."""
        cancel = asyncio.Event()
        recorder = Recorder()
        closed = asyncio.Event()

        async def stalled() -> AsyncIterator[str]:
            try:
                yield 'data: {"type":"chunk","content":"one"}\n\n'
                await asyncio.sleep(30)
                yield "data: [DONE]\n\n"
            finally:
                closed.set()

        asyncio.get_running_loop().call_later(0.05, cancel.set)
        outcome = await asyncio.wait_for(
            StreamReader().consume(stalled(), recorder.callbacks(), cancel_event=cancel),
            timeout=2,
        )

        assert outcome.status == "cancelled"
        assert outcome.content == "one"
        assert recorder.chunks == ["one"]
        assert recorder.completed == []
        assert recorder.errors == []
        assert closed.is_set()

    @pytest.mark.asyncio
    async def test_cancel_before_first_read(self) -> None:
        cancel = asyncio.Event()
        cancel.set()
        recorder = Recorder()

        outcome = await StreamReader().consume(
            chunks_of("data: [DONE]\n\n"), recorder.callbacks(), cancel_event=cancel
        )

        assert outcome.status == "cancelled"
        assert recorder.completed == []

    @pytest.mark.asyncio
    async def test_source_closed_after_completion(self) -> None:
        closed: list[bool] = []

        async def source() -> AsyncIterator[str]:
            try:
                yield "data: [DONE]\n\n"
                yield 'data: {"type":"chunk","content":"late"}\n\n'
            finally:
                closed.append(True)

        outcome = await StreamReader().consume(source(), Recorder().callbacks())

        assert outcome.status == "completed"
        assert closed == [True]
