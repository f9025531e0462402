from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.schemas.health import HealthCheckResponse
from app.services.what3words_service import what3words_service

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """
    Health check endpoint that verifies the What3Words API answers.

    Returns 200 if the API is reachable, 503 otherwise.
    """
    what3words_health = await what3words_service.health_check()

    response = HealthCheckResponse(
        status="healthy" if what3words_health.healthy else "unhealthy",
        service=settings.PROJECT_NAME,
        version=settings.VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        what3words="connected" if what3words_health.healthy else "disconnected",
        what3words_detail=what3words_health,
    )

    if what3words_health.healthy:
        return response
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response.model_dump()
    )
