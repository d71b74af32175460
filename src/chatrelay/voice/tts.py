"""
Text-to-speech vendor chain.

Tries ElevenLabs, then Azure Speech, each only when its key is configured.
Any vendor failure falls through to the next one; when none produces audio
the caller tells the browser to speak the text itself.
"""

from xml.sax.saxutils import escape, quoteattr

import httpx

from chatrelay.config import Settings, usable_key
from chatrelay.models.api import VoiceSettings
from chatrelay.utils.errors import UpstreamError
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

ELEVENLABS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"
AZURE_URL = "https://{region}.tts.speech.microsoft.com/cognitiveservices/v1"
AZURE_OUTPUT_FORMAT = "audio-16khz-128kbitrate-mono-mp3"


class SpeechSynthesizer:
    """Produces MP3 audio from text using the configured speech vendors."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the synthesizer.

        Args:
            settings: Application settings with vendor keys and voices
            transport: Optional httpx transport (used by tests)
        """
        self.settings = settings
        self.elevenlabs_key = usable_key(settings.elevenlabs_api_key)
        self.azure_key = usable_key(settings.azure_speech_key)
        self._client = httpx.AsyncClient(timeout=settings.tts_timeout, transport=transport)

    @property
    def has_vendor(self) -> bool:
        return self.elevenlabs_key is not None or self.azure_key is not None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def synthesize(
        self,
        text: str,
        voice: str | None = None,
        voice_settings: VoiceSettings | None = None,
    ) -> bytes | None:
        """
        Synthesize speech with the first vendor that succeeds.

        Args:
            text: Text to speak
            voice: Vendor voice override
            voice_settings: Pitch and volume hints

        Returns:
            MP3 bytes, or None when the browser should synthesize locally
        """
        voice_settings = voice_settings or VoiceSettings()

        if self.elevenlabs_key:
            try:
                return await self._elevenlabs(text, voice, voice_settings)
            except (httpx.HTTPError, UpstreamError) as exc:
                logger.warning(
                    "ElevenLabs synthesis failed, trying next vendor",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )

        if self.azure_key:
            try:
                return await self._azure(text, voice)
            except (httpx.HTTPError, UpstreamError) as exc:
                logger.warning(
                    "Azure synthesis failed, falling back to browser speech",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )

        logger.info("No speech vendor produced audio", extra={"text_length": len(text)})
        return None

    async def _elevenlabs(
        self,
        text: str,
        voice: str | None,
        voice_settings: VoiceSettings,
    ) -> bytes:
        voice_id = voice or self.settings.elevenlabs_voice_id
        response = await self._client.post(
            ELEVENLABS_URL.format(voice_id=voice_id),
            headers={
                "Accept": "audio/mpeg",
                "Content-Type": "application/json",
                "xi-api-key": self.elevenlabs_key or "",
            },
            json={
                "text": text,
                "model_id": self.settings.elevenlabs_model_id,
                "voice_settings": {
                    "stability": voice_settings.pitch or 0.5,
                    "similarity_boost": voice_settings.volume or 0.75,
                },
            },
        )
        if response.is_error:
            raise UpstreamError("elevenlabs", response.status_code, response.text)
        logger.info(
            "Speech synthesized",
            extra={"vendor": "elevenlabs", "voice": voice_id, "audio_bytes": len(response.content)},
        )
        return response.content

    async def _azure(self, text: str, voice: str | None) -> bytes:
        voice_name = voice or self.settings.azure_speech_voice
        ssml = (
            "<speak version='1.0' xml:lang='en-US'>"
            f"<voice xml:lang='en-US' name={quoteattr(voice_name)}>{escape(text)}</voice>"
            "</speak>"
        )
        response = await self._client.post(
            AZURE_URL.format(region=self.settings.azure_speech_region),
            headers={
                "Ocp-Apim-Subscription-Key": self.azure_key or "",
                "Content-Type": "application/ssml+xml",
                "X-Microsoft-OutputFormat": AZURE_OUTPUT_FORMAT,
            },
            content=ssml.encode("utf-8"),
        )
        if response.is_error:
            raise UpstreamError("azure", response.status_code, response.text)
        logger.info(
            "Speech synthesized",
            extra={"vendor": "azure", "voice": voice_name, "audio_bytes": len(response.content)},
        )
        return response.content
