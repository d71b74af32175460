"""
Request and result models for the HTTP surface and the orchestrator contract.

Field aliases follow the camelCase the browser client sends and expects.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatrelay.models.messages import Message


class ChatRequest(BaseModel):
    """Body of `POST /api/chat`."""

    messages: list[Message] = Field(description="Conversation so far, oldest first")
    personality: str | None = Field(default=None, description="Personality ID")
    streaming: bool = Field(default=False, description="Stream the reply as SSE frames")


class AnalysisRequest(BaseModel):
    """Body of `POST /api/analysis`."""

    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(min_length=1, description="Content to analyze")
    analysis_type: str = Field(
        default="general",
        alias="analysisType",
        description="Kind of analysis to perform",
    )


class VoiceSettings(BaseModel):
    """Playback hints forwarded to the speech vendor or the browser."""

    rate: float | None = None
    pitch: float | None = None
    volume: float | None = None


class TTSRequest(BaseModel):
    """Body of `POST /api/voice/tts`."""

    text: str = Field(min_length=1, description="Text to speak")
    voice: str | None = Field(default=None, description="Voice identifier")
    settings: VoiceSettings | None = Field(default=None, description="Playback settings")


class VoiceChatRequest(BaseModel):
    """Body of `POST /api/voice/respond`."""

    message: str = Field(min_length=1, description="Transcribed user utterance")
    personality: str | None = Field(default=None, description="Personality ID")


class ErrorCategory(str, Enum):
    """User-facing buckets that raw provider errors are translated into."""

    CONFIGURATION = "configuration"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    GENERIC = "generic"


class ErrorDetail(BaseModel):
    """Structured failure carried by an OrchestratorResult."""

    code: str
    message: str
    category: ErrorCategory = ErrorCategory.GENERIC
    details: str | None = None


class ResultData(BaseModel):
    """Successful payload of an OrchestratorResult."""

    message: Message | None = None
    content: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class OrchestratorResult(BaseModel):
    """
    Uniform result of every one-shot orchestrator operation.

    Exactly one of `data` and `error` is set, matching `success`.
    """

    success: bool
    data: ResultData | None = None
    error: ErrorDetail | None = None

    @classmethod
    def ok(cls, **data: Any) -> "OrchestratorResult":
        return cls(success=True, data=ResultData(**data))

    @classmethod
    def failed(cls, error: ErrorDetail) -> "OrchestratorResult":
        return cls(success=False, error=error)


class HealthReport(BaseModel):
    """Outcome of the orchestrator's synthetic health probe."""

    healthy: bool
    services: dict[str, bool]
