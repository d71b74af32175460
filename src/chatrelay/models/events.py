"""
Stream event models and the SSE frame codec.

Each event travels as one self-contained `data: <json>\\n\\n` frame. The
terminal event has no JSON body; it is the literal `data: [DONE]\\n\\n`.
"""

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

DONE_SENTINEL = "[DONE]"
TERMINAL_FRAME = f"data: {DONE_SENTINEL}\n\n"


class StartEvent(BaseModel):
    """First event of every stream."""

    type: Literal["start"] = "start"


class ChunkEvent(BaseModel):
    """One text fragment, in production order."""

    type: Literal["chunk"] = "chunk"
    content: str


class CompleteEvent(BaseModel):
    """Successful end of the stream carrying the full accumulated text."""

    type: Literal["complete"] = "complete"
    content: str


class ErrorEvent(BaseModel):
    """Failed end of the stream. Nothing follows it."""

    type: Literal["error"] = "error"
    message: str


class TerminalEvent(BaseModel):
    """End-of-stream sentinel sent after `complete`."""

    type: Literal["terminal"] = "terminal"


StreamEvent = Annotated[
    Union[StartEvent, ChunkEvent, CompleteEvent, ErrorEvent, TerminalEvent],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def encode_frame(event: StreamEvent) -> str:
    """Serialize an event as a single SSE frame."""
    if isinstance(event, TerminalEvent):
        return TERMINAL_FRAME
    return f"data: {event.model_dump_json()}\n\n"


def parse_frame_payload(payload: str) -> StreamEvent:
    """
    Decode the payload of one `data:` line back into an event.

    Args:
        payload: Text after the `data:` marker

    Returns:
        The decoded event

    Raises:
        ValueError: If the payload is not valid JSON or not a known event shape
    """
    if payload.strip() == DONE_SENTINEL:
        return TerminalEvent()
    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in frame: {exc}") from exc
    # pydantic's ValidationError is a ValueError subclass
    return _event_adapter.validate_python(raw)


def is_terminal(event: StreamEvent) -> bool:
    """True for events that end a stream; only the sentinel may follow `complete`."""
    return isinstance(event, (CompleteEvent, ErrorEvent, TerminalEvent))
