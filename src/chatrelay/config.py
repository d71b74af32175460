"""
Configuration management using Pydantic Settings.

This module handles all environment-based configuration for the chat relay,
including API settings, completion provider credentials, demo pacing and
speech vendor connections.
"""

from typing import Any, Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Values shipped in example .env files; treated the same as a missing key.
PLACEHOLDER_KEYS = frozenset(
    {
        "your_openai_key_here",
        "your_anthropic_key_here",
        "your_elevenlabs_key_here",
        "your_azure_speech_key_here",
    }
)


def usable_key(value: str | None) -> str | None:
    """Return the key when it is set and not a placeholder, otherwise None."""
    if value is None:
        return None
    value = value.strip()
    if not value or value in PLACEHOLDER_KEYS:
        return None
    return value


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and .env file.

    Missing provider keys are not an error: the orchestrator switches to demo
    mode and speech synthesis falls back to the browser.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API server host address")
    api_port: int = Field(default=8000, description="API server port")
    api_title: str = Field(default="Chat Relay", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")

    # Environment
    environment: str = Field(
        default="development",
        description="Deployment environment",
        pattern="^(development|staging|production|test)$",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_format: str = Field(
        default="json",
        description="Logging format",
        pattern="^(json|standard)$",
    )

    # Completion provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="Completion provider used when its API key is configured",
    )
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4-turbo-preview", description="OpenAI model ID")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible REST API",
    )
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")
    anthropic_model: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Anthropic model ID",
    )
    default_max_tokens: int = Field(
        default=2000,
        description="Maximum tokens per completion",
        ge=1,
        le=8000,
    )
    analysis_temperature: float = Field(
        default=0.3,
        description="Temperature for deep analysis requests",
        ge=0.0,
        le=2.0,
    )
    request_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for one-shot completion calls",
        gt=0,
        le=300,
    )
    stream_timeout: float = Field(
        default=120.0,
        description="Timeout in seconds for streaming completion calls",
        gt=0,
        le=600,
    )

    # Demo mode pacing
    demo_initial_delay_ms: int = Field(
        default=500,
        description="Simulated latency before a demo response starts",
        ge=0,
        le=10000,
    )
    demo_fragment_delay_ms: int = Field(
        default=50,
        description="Simulated delay between streamed demo fragments",
        ge=0,
        le=5000,
    )

    # Text-to-speech vendors
    elevenlabs_api_key: str | None = Field(default=None, description="ElevenLabs API key")
    elevenlabs_voice_id: str = Field(
        default="21m00Tcm4TlvDq8ikWAM", description="ElevenLabs voice ID"
    )
    elevenlabs_model_id: str = Field(
        default="eleven_monolingual_v1", description="ElevenLabs model ID"
    )
    azure_speech_key: str | None = Field(default=None, description="Azure Speech key")
    azure_speech_region: str = Field(default="eastus", description="Azure Speech region")
    azure_speech_voice: str = Field(
        default="en-US-JennyNeural", description="Azure neural voice name"
    )
    tts_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for speech vendor calls",
        gt=0,
        le=120,
    )

    # CORS Configuration
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")
    cors_allow_credentials: bool = Field(
        default=False,  # Must be False when using wildcard
        description="Allow CORS credentials",
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        description="Allowed CORS methods",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "X-Request-ID"],
        description="Allowed CORS headers",
    )

    # Request Validation
    max_request_body_size: int = Field(
        default=1048576,  # 1 MB in bytes
        description="Maximum request body size in bytes",
        ge=1024,
        le=10485760,
    )

    # Security Headers Configuration
    enable_security_headers: bool = Field(
        default=True,
        description="Enable security headers on every response",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def llm_api_key(self) -> str | None:
        """Usable API key for the selected completion provider."""
        if self.llm_provider == "anthropic":
            return usable_key(self.anthropic_api_key)
        return usable_key(self.openai_api_key)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def demo_mode(self) -> bool:
        """True when no usable completion provider credentials are configured."""
        return self.llm_api_key is None

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary."""
        return {
            "level": self.log_level,
            "format": self.log_format,
        }
