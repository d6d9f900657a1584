"""
Health Check Endpoints

Liveness and readiness checks; readiness requires a readable order snapshot.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Response
from pydantic import BaseModel

from bought_together.config import get_settings
from bought_together.ingestion import SnapshotNotFoundError, get_snapshot_store

settings = get_settings()
router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


def check_snapshot_health() -> Dict[str, Any]:
    store = get_snapshot_store()
    try:
        orders = store.get()
    except SnapshotNotFoundError as e:
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy", "path": str(store.path), "orders": len(orders)}


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Application status
    - Order snapshot availability
    """
    snapshot = check_snapshot_health()
    return HealthResponse(
        status="healthy" if snapshot["status"] == "healthy" else "degraded",
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks={"snapshot": snapshot},
    )


@router.get("/health/live")
def liveness_check() -> Dict[str, str]:
    """Returns 200 if the application is running."""
    return {"status": "alive"}


@router.get("/health/ready")
def readiness_check(response: Response) -> Dict[str, str]:
    """Returns 200 once the order snapshot can be read."""
    if not get_snapshot_store().is_available():
        response.status_code = 503
        return {"status": "not_ready", "reason": "snapshot_unavailable"}
    return {"status": "ready"}
