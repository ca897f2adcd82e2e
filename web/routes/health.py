"""Health check routes for the connection pool."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from cloudbuild_gcp import __version__
from cloudbuild_gcp.models.db_connection import PoolLifecycleManager
from cloudbuild_gcp.models.db_factory import ConnectionPool
from web.dependencies import get_connection_pool, get_pool_manager, get_resources

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(
    manager: PoolLifecycleManager = Depends(get_pool_manager),
    resources: Dict[str, Any] = Depends(get_resources),
) -> JSONResponse:
    """
    Health check endpoint for monitoring and container orchestration.

    Returns 503 when the database cannot answer a trivial query.
    """
    db_healthy = manager.health_check(resources)
    status = "healthy" if db_healthy else "unhealthy"
    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "components": {
                "database": {
                    "status": status,
                    "pool": manager.stats(resources),
                },
            },
        },
    )


@router.get("/health/pool")
def pool_stats(pool: ConnectionPool = Depends(get_connection_pool)) -> Dict[str, Any]:
    """Current connection pool statistics."""
    return pool.stats()
