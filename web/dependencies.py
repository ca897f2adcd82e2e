"""Dependency injection functions for the web application."""

from typing import Any, Dict

from fastapi import Request

from cloudbuild_gcp.models.db_connection import PoolLifecycleManager
from cloudbuild_gcp.models.db_factory import ConnectionPool


def get_pool_manager(request: Request) -> PoolLifecycleManager:
    """Get the lifecycle manager owned by the application."""
    return request.app.state.pool_manager


def get_resources(request: Request) -> Dict[str, Any]:
    """Get the application-scoped storage holding the pool."""
    return request.app.state.resources


def get_connection_pool(request: Request) -> ConnectionPool:
    """
    Get the shared connection pool.

    Raises:
        PoolNotInitializedError: If startup has not created the pool
    """
    return get_pool_manager(request).get_pool(get_resources(request))
