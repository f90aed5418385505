"""Health check endpoint."""

from fastapi import APIRouter

from tunecache_api.schemas.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse()
