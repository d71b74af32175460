"""
Completion providers.

The active provider is chosen once at startup from configuration; demo mode is
the absence of a provider, not a provider setting.
"""

from chatrelay.config import Settings
from chatrelay.providers.anthropic import AnthropicProvider
from chatrelay.providers.base import CompletionProvider, TokenCallback
from chatrelay.providers.demo import DemoFallback, ResponseCursor
from chatrelay.providers.openai import OpenAIProvider
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)


def build_completion_provider(settings: Settings) -> CompletionProvider | None:
    """
    Create the configured completion provider.

    Args:
        settings: Application settings

    Returns:
        The provider, or None when no usable API key is configured (demo mode)
    """
    api_key = settings.llm_api_key
    if api_key is None:
        logger.warning(
            "No completion provider credentials configured - running in demo mode",
            extra={"llm_provider": settings.llm_provider},
        )
        return None

    if settings.llm_provider == "anthropic":
        return AnthropicProvider(
            api_key=api_key,
            model=settings.anthropic_model,
            timeout=settings.request_timeout,
        )
    return OpenAIProvider(
        api_key=api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout,
        stream_timeout=settings.stream_timeout,
    )


def build_demo_fallback(settings: Settings, cursor: ResponseCursor | None = None) -> DemoFallback:
    """Create the demo fallback with the configured pacing."""
    return DemoFallback(
        cursor=cursor,
        initial_delay=settings.demo_initial_delay_ms / 1000,
        fragment_delay=settings.demo_fragment_delay_ms / 1000,
    )


__all__ = [
    "AnthropicProvider",
    "CompletionProvider",
    "DemoFallback",
    "OpenAIProvider",
    "ResponseCursor",
    "TokenCallback",
    "build_completion_provider",
    "build_demo_fallback",
]
