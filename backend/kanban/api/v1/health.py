"""
Health check and metrics endpoints.
"""
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Response, status
from kanban.core.config import settings
from kanban.core.events import check_broadcast_health, check_database_health
from kanban.core.metrics import get_metrics, get_metrics_content_type
from kanban.core.models import utcnow

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": settings.app_version
    }


@router.get("/health/detailed")
async def detailed_health_check() -> Dict[str, Any]:
    """Detailed health check with dependency status."""
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": settings.app_version,
        "checks": {}
    }

    checks = {
        "database": await check_database_health(),
        "broadcast": await check_broadcast_health(),
    }

    for name, (healthy, message) in checks.items():
        health_status["checks"][name] = {
            "status": "healthy" if healthy else "unhealthy",
            "message": message
        }

    if not all(healthy for healthy, _ in checks.values()):
        health_status["status"] = "unhealthy"
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=health_status
        )

    return health_status


@router.get("/metrics")
async def get_prometheus_metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
