"""JSON bodies shared by the `/api` routes."""

from typing import Any

from fastapi.responses import JSONResponse

from chatrelay.models.api import OrchestratorResult

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def failure_response(result: OrchestratorResult, fallback_message: str) -> JSONResponse:
    """500 response for a failed orchestrator result."""
    content: dict[str, Any] = {"error": fallback_message}
    if result.error is not None:
        content = {
            "error": result.error.message,
            "code": result.error.code,
            "category": result.error.category.value,
        }
        if result.error.details:
            content["details"] = result.error.details
    return JSONResponse(status_code=500, content=content)
