"""Deep analysis endpoint."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from chatrelay.api.dependencies import get_orchestrator
from chatrelay.api.limiter import ANALYSIS_LIMIT, limiter
from chatrelay.api.responses import failure_response
from chatrelay.models.api import AnalysisRequest
from chatrelay.orchestrator import Orchestrator
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analysis")
@limiter.limit(ANALYSIS_LIMIT)
async def analyze(
    request: Request,
    body: AnalysisRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Analyze free-form content with the configured provider."""
    logger.info(
        "Analysis request",
        extra={"analysis_type": body.analysis_type, "content_length": len(body.content)},
    )

    result = await orchestrator.process_analysis(body.content, body.analysis_type)
    if not result.success or result.data is None:
        return failure_response(result, "Failed to process analysis request")

    return JSONResponse(
        content={
            "success": True,
            "content": result.data.content,
            "metadata": result.data.metadata,
        }
    )
