"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from chatrelay.api.dependencies import get_orchestrator, get_settings
from chatrelay.config import Settings
from chatrelay.orchestrator import Orchestrator
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check(
    orchestrator: Orchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Health check endpoint.

    Runs a synthetic chat through the orchestrator.

    Returns:
        200 when healthy, 503 when degraded, 500 when the probe itself fails
    """
    logger.debug("Health check request received")
    timestamp = datetime.now(timezone.utc).isoformat()

    try:
        report = await orchestrator.health_check()
    except Exception as exc:
        logger.error(
            "Health check failed",
            extra={"error": str(exc), "error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=500,
            content={"status": "error", "timestamp": timestamp, "error": str(exc)},
        )

    if not report.healthy:
        logger.warning("Health check degraded", extra={"services": report.services})

    return JSONResponse(
        status_code=200 if report.healthy else 503,
        content={
            "status": "healthy" if report.healthy else "degraded",
            "timestamp": timestamp,
            "version": settings.api_version,
            "services": report.services,
            "environment": settings.environment,
        },
    )
