# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: health, readiness and Prometheus endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response

from tracker.core.config import settings
from tracker.core.dependencies import ServiceContainer, get_container

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check(container: ServiceContainer = Depends(get_container)):
    """Liveness probe."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "projects_count": container.project_repo.count(),
        "functions_count": container.function_repo.count(),
    }


@router.get("/health/ready")
def readiness_check(container: ServiceContainer = Depends(get_container)):
    """Readiness probe: the database must answer."""
    try:
        container.project_repo.verify_connection()
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=503, detail=f"Database unavailable: {exc}")
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "database": "connected",
        "admin_function_defined": container.registry.default_admin() is not None,
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
