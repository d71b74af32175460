"""FastAPI dependencies resolving process-wide services from app state."""

from fastapi import Request

from chatrelay.config import Settings
from chatrelay.orchestrator import Orchestrator
from chatrelay.voice.tts import SpeechSynthesizer


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(request: Request) -> Orchestrator:
    """Orchestrator built at application startup."""
    return request.app.state.orchestrator


def get_speech(request: Request) -> SpeechSynthesizer:
    return request.app.state.speech
