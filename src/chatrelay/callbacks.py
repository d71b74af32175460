"""
Stream callback bundle shared by the orchestrator and the client reader.

Every callback is optional and may be a plain function or a coroutine
function. A stream drives `on_start`, then `on_chunk` per fragment, then
exactly one of `on_complete` or `on_error`.
"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

ChunkCallback = Callable[[str], Awaitable[None] | None]
CompleteCallback = Callable[[str], Awaitable[None] | None]
ErrorCallback = Callable[[Exception], Awaitable[None] | None]
StartCallback = Callable[[], Awaitable[None] | None]


@dataclass
class StreamCallbacks:
    """Consumer hooks for one stream."""

    on_start: StartCallback | None = None
    on_chunk: ChunkCallback | None = None
    on_complete: CompleteCallback | None = None
    on_error: ErrorCallback | None = None


async def invoke(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Call a callback if present, awaiting its result when it is awaitable."""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
