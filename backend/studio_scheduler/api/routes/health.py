"""
Health Check API Routes
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...core.config import settings
from ...core.observability import get_logger
from ...domain.shared.base import utcnow

logger = get_logger(__name__)
router = APIRouter()


@router.get("/health", summary="Service health")
async def get_health_status() -> JSONResponse:
    """Liveness probe; the engine holds no connections of its own."""
    response_data = {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "environment": settings.ENVIRONMENT,
        "timestamp": utcnow().isoformat(),
    }
    logger.debug("Health check performed")
    return JSONResponse(content=response_data, status_code=200)
