"""Liveness endpoint."""

from fastapi import APIRouter, Depends, Request

from one_engine.api.boundary import error_boundary
from one_engine.api.deps import ServiceContainer, get_container
from one_engine.api.responses import success
from one_engine.core.utils import utc_now

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
@error_boundary("Health check failed")
async def health(request: Request, container: ServiceContainer = Depends(get_container)):
    storage_ok = await container.storage.metadata.ping()
    return success({
        "status": "healthy" if storage_ok else "degraded",
        "version": container.settings.api_version,
        "environment": container.settings.environment,
        "timestamp": utc_now().isoformat(),
        "services": {"storage": "up" if storage_ok else "down"},
    })
