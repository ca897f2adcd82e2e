"""FastAPI application hosting the shared database connection pool."""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from loguru import logger
from starlette.exceptions import HTTPException

from cloudbuild_gcp import __version__
from cloudbuild_gcp.core.config.settings import Settings, get_settings
from cloudbuild_gcp.core.exceptions import CloudBuildGcpError
from cloudbuild_gcp.models.db_connection import PoolLifecycleManager
from cloudbuild_gcp.models.pool_config import PoolConfig
from web.exception_handlers import (
    application_error_handler,
    http_exception_handler,
    validation_exception_handler,
)
from web.routes import health_router

# Seconds allowed for closing the pool during shutdown
SHUTDOWN_TIMEOUT = 10


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Startup creates the pool and verifies the schema; any failure aborts
    startup. Shutdown closes the pool.
    """
    manager: PoolLifecycleManager = app.state.pool_manager

    # Startup
    logger.info("FastAPI application starting up...")
    try:
        await asyncio.to_thread(manager.on_start, app.state.resources)
    except CloudBuildGcpError as e:
        logger.critical(f"Startup aborted: {e.message}")
        raise

    yield

    # Shutdown
    logger.info("FastAPI application shutting down...")
    try:
        await asyncio.wait_for(
            asyncio.to_thread(manager.on_stop, app.state.resources), timeout=SHUTDOWN_TIMEOUT
        )
    except asyncio.TimeoutError:
        logger.error(f"Connection pool close timed out after {SHUTDOWN_TIMEOUT}s")


def create_app(
    settings: Optional[Settings] = None, manager: Optional[PoolLifecycleManager] = None
) -> FastAPI:
    """
    Build the application with an explicitly owned pool lifecycle manager.

    Args:
        settings: Application settings (loaded from the environment if omitted)
        manager: Lifecycle manager (built from ``settings`` if omitted)

    Returns:
        Configured FastAPI application
    """
    if manager is None:
        settings = settings or get_settings()
        manager = PoolLifecycleManager(PoolConfig.from_settings(settings))

    app = FastAPI(
        title="cloudbuild-gcp",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.pool_manager = manager
    app.state.resources = {}

    app.add_exception_handler(CloudBuildGcpError, application_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health_router)
    return app
