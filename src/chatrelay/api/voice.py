"""Voice endpoints: speech synthesis and speech-formatted replies."""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from chatrelay.api.dependencies import get_orchestrator, get_speech
from chatrelay.api.limiter import VOICE_LIMIT, limiter
from chatrelay.api.responses import failure_response
from chatrelay.models.api import TTSRequest, VoiceChatRequest
from chatrelay.models.personality import get_personality
from chatrelay.orchestrator import Orchestrator
from chatrelay.utils.logging import get_logger
from chatrelay.voice.tts import SpeechSynthesizer

logger = get_logger(__name__)

router = APIRouter(prefix="/api/voice", tags=["voice"])

BROWSER_TTS_MESSAGE = "Using browser text-to-speech"


@router.post("/tts")
@limiter.limit(VOICE_LIMIT)
async def text_to_speech(
    request: Request,
    body: TTSRequest,
    speech: SpeechSynthesizer = Depends(get_speech),
) -> Response:
    """
    Convert text to speech.

    Returns:
        `audio/mpeg` bytes from the first speech vendor that succeeds, or JSON
        telling the browser to speak the text itself
    """
    logger.info(
        "TTS request",
        extra={"text_length": len(body.text), "voice": body.voice, "vendor": speech.has_vendor},
    )

    audio = await speech.synthesize(body.text, body.voice, body.settings)
    if audio is not None:
        return Response(
            content=audio,
            media_type="audio/mpeg",
            headers={"Content-Length": str(len(audio))},
        )

    return JSONResponse(
        content={
            "success": True,
            "useBrowserTTS": True,
            "text": body.text,
            "voice": body.voice or "default",
            "settings": body.settings.model_dump() if body.settings else {},
            "message": BROWSER_TTS_MESSAGE,
        }
    )


@router.post("/respond")
@limiter.limit(VOICE_LIMIT)
async def voice_reply(
    request: Request,
    body: VoiceChatRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Answer a spoken message with a reply formatted for speech."""
    personality = get_personality(body.personality)
    result = await orchestrator.process_voice_request(body.message, personality.id)
    if not result.success or result.data is None:
        return failure_response(result, "Failed to process voice request")

    return JSONResponse(
        content={
            "success": True,
            "message": result.data.message.model_dump(mode="json") if result.data.message else None,
            "content": result.data.content,
            "metadata": result.data.metadata,
        }
    )
