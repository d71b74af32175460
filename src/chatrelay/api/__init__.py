"""
API endpoints for the chat relay.

Every router is mounted under `/api`.
"""

from chatrelay.api.analysis import router as analysis_router
from chatrelay.api.chat import router as chat_router
from chatrelay.api.health import router as health_router
from chatrelay.api.models import router as models_router
from chatrelay.api.voice import router as voice_router

__all__ = ["analysis_router", "chat_router", "health_router", "models_router", "voice_router"]
