"""Models listing endpoint."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from chatrelay.api.dependencies import get_orchestrator
from chatrelay.api.limiter import MODELS_LIMIT, limiter
from chatrelay.orchestrator import Orchestrator
from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["models"])


@router.get("/models")
@limiter.limit(MODELS_LIMIT)
async def list_models(
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """
    List the models the active provider can serve.

    In demo mode the list holds only the demo model.
    """
    models = [
        {"object": "model", "owned_by": model.provider, **model.model_dump()}
        for model in orchestrator.list_models()
    ]
    logger.debug(f"Returning {len(models)} model(s)", extra={"model_count": len(models)})

    return JSONResponse(
        content={"object": "list", "data": models, "demoMode": orchestrator.demo_mode}
    )
