"""
Health check endpoint.

GET /api/v1/health runs the cache's synthetic set/get/delete cycle and reports
whether the remote tier is configured.
"""

from fastapi import APIRouter, Depends, Request
import logging

from transit_assist.core.cache_store import CacheStore
from transit_assist.core.dependencies import get_cache_store, get_invalidation_service
from transit_assist.models.api_models import HealthResponse
from transit_assist.services import CacheInvalidationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Cache health check",
)
async def health_check(
    request: Request,
    cache: CacheStore = Depends(get_cache_store),
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> HealthResponse:
    """
    Report cache health.

    Status is "healthy" when the synthetic cycle passed, "degraded" otherwise.
    A missing remote tier is not an error.
    """
    report = await invalidation.health_check()
    if not report.is_healthy:
        logger.warning(f"Cache health check reported errors: {report.errors}")

    return HealthResponse(
        status="healthy" if report.is_healthy else "degraded",
        version=request.app.version,
        remote_cache_enabled=cache.remote.enabled,
        local_cache_size=report.local_cache_size,
        errors=report.errors,
    )
