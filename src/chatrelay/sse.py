"""
Incremental decoder for `data:`-prefixed server-sent event streams.

Network reads split frames at arbitrary byte positions, so the decoder keeps
the unfinished tail of the last read and only releases payloads of complete
lines. Used for upstream provider streams and for the relay's own frames.
"""

from collections.abc import Iterator

DATA_MARKER = "data:"


class SSELineDecoder:
    """
    Feed text chunks, get back the payload of every complete `data:` line.

    Blank lines, `:` comments and other SSE fields (`event:`, `id:`, `retry:`)
    are skipped. One optional space after the marker is stripped.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> Iterator[str]:
        """Add a chunk and yield payloads of the lines it completes."""
        self._buffer += text
        while True:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline].rstrip("\r")
            self._buffer = self._buffer[newline + 1 :]
            payload = self._payload(line)
            if payload is not None:
                yield payload

    def close(self) -> Iterator[str]:
        """Flush a final line that arrived without a trailing newline."""
        line, self._buffer = self._buffer.rstrip("\r"), ""
        payload = self._payload(line)
        if payload is not None:
            yield payload

    @property
    def pending(self) -> str:
        """Text of the incomplete line still waiting for its newline."""
        return self._buffer

    @staticmethod
    def _payload(line: str) -> str | None:
        if not line.startswith(DATA_MARKER):
            return None
        payload = line[len(DATA_MARKER) :]
        if payload.startswith(" "):
            payload = payload[1:]
        return payload
