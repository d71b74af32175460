"""Chat endpoint with one-shot and SSE streaming replies."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from chatrelay.api.dependencies import get_orchestrator
from chatrelay.api.limiter import CHAT_LIMIT, limiter
from chatrelay.api.responses import SSE_HEADERS, failure_response
from chatrelay.models.api import ChatRequest
from chatrelay.models.personality import get_personality
from chatrelay.orchestrator import ChatOptions, Orchestrator
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat")
@limiter.limit(CHAT_LIMIT)
async def chat(
    request: Request,
    body: ChatRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Produce an assistant reply for a conversation.

    With `streaming` set, the reply is sent as `text/event-stream` frames:
    `start`, `chunk`*, then `complete` followed by `data: [DONE]`, or a single
    `error`. Stream failures are reported in-band, so the status is always 200
    once streaming begins.

    Args:
        body: Conversation, personality and streaming flag

    Returns:
        StreamingResponse, or JSON `{success, message, metadata}`

    Raises:
        ValidationError: If the personality is unknown (400)
    """
    personality = get_personality(body.personality)
    options = ChatOptions(personality=personality.id)

    logger.info(
        "Chat request",
        extra={
            "message_count": len(body.messages),
            "personality": personality.id,
            "streaming": body.streaming,
            "demo_mode": orchestrator.demo_mode,
        },
    )

    if body.streaming:
        return StreamingResponse(
            orchestrator.stream_frames(body.messages, options),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    result = await orchestrator.process_chat(body.messages, options)
    if not result.success or result.data is None:
        return failure_response(result, "Failed to process chat request")

    return JSONResponse(
        content={
            "success": True,
            "message": result.data.message.model_dump(mode="json") if result.data.message else None,
            "metadata": result.data.metadata,
        }
    )
