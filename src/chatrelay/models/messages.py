"""
Conversation and completion data models.

Messages arrive from the browser in the shape the chat UI keeps in memory;
completion requests and responses are the provider-neutral contract between
the orchestrator and every completion provider.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


class MessageRole(str, Enum):
    """Enumeration of valid message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(str, Enum):
    """Kinds of content a chat message can carry."""

    TEXT = "text"
    VOICE = "voice"
    IMAGE = "image"
    DOCUMENT = "document"
    CODE = "code"
    ANALYSIS = "analysis"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """
    A single conversation turn.

    Inbound messages only need `role` and `content`; the remaining fields are
    filled in so that every message the service returns is complete.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str = Field(default_factory=lambda: f"msg-{uuid4().hex}", description="Message ID")
    role: MessageRole = Field(description="Role of the message sender")
    content: str = Field(description="Message content")
    type: MessageType = Field(default=MessageType.TEXT, description="Content type")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Free-form metadata")
    timestamp: datetime = Field(default_factory=_utcnow, description="Creation time")


def create_message(
    content: str,
    role: MessageRole = MessageRole.ASSISTANT,
    metadata: dict[str, Any] | None = None,
    message_id: str | None = None,
) -> Message:
    """Build a text message with a fresh ID and timestamp."""
    fields: dict[str, Any] = {
        "role": role,
        "content": content,
        "metadata": metadata or {},
    }
    if message_id:
        fields["id"] = message_id
    return Message(**fields)


def last_user_content(messages: list[Message]) -> str:
    """Content of the most recent user message, or an empty string."""
    for message in reversed(messages):
        if message.role == MessageRole.USER.value:
            return message.content
    return ""


class CompletionRequest(BaseModel):
    """Provider-neutral completion request. Built per call, never mutated."""

    model_config = ConfigDict(frozen=True)

    messages: list[Message] = Field(description="Ordered conversation messages")
    system_prompt: str | None = Field(default=None, description="Optional system prompt")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=2000, ge=1, description="Maximum tokens in the response")
    streaming: bool = Field(default=False, description="Whether tokens are streamed")


class TokenUsage(BaseModel):
    """Token usage statistics from a single provider call."""

    prompt: NonNegativeInt = Field(default=0, description="Prompt tokens consumed")
    completion: NonNegativeInt = Field(default=0, description="Completion tokens generated")
    total: NonNegativeInt = Field(default=0, description="Prompt plus completion tokens")


class CompletionResponse(BaseModel):
    """Result of a one-shot completion call."""

    content: str = Field(description="Generated text")
    model_id: str = Field(description="Model that produced the text")
    token_usage: TokenUsage = Field(default_factory=TokenUsage, description="Token usage")
    latency_ms: NonNegativeInt = Field(description="Wall-clock latency of the call")
    finish_reason: str | None = Field(default=None, description="Why generation stopped")


class ModelInfo(BaseModel):
    """Catalogue entry describing a model a provider can serve."""

    id: str
    name: str
    provider: str
    capabilities: list[str] = Field(default_factory=list)
    context_window: int = 0
    max_output_tokens: int = 0
