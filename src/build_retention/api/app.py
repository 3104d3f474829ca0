"""
FastAPI Application Setup.

Application factory for the Build Retention REST API: the batch cleanup
command, storage event webhooks, and health.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from build_retention import __version__
from build_retention.api.middleware.logging import RequestLoggingMiddleware
from build_retention.api.routes import cleanup, events, health
from build_retention.api.schemas.exceptions import APIException, error_body
from build_retention.config import load_config, storage_root
from build_retention.core.exceptions import ConfigurationError, RetentionError
from build_retention.policy.models import PolicyConfig
from build_retention.repository.events import StorageEventBus
from build_retention.repository.filesystem import FilesystemRepository
from build_retention.repository.service import RepositoryService
from build_retention.triggers import RetentionTriggers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and shutdown with the active policy."""
    config: PolicyConfig = app.state.triggers.config
    logger.info("Build Retention API starting up...")
    logger.info(f"Version: {__version__}")
    logger.info(
        f"Release repos: {list(config.release_repos)}, snapshot repos: {list(config.snapshot_repos)}, "
        f"archive repo: {config.archive_repo}, keep latest: {config.keep_latest}, "
        f"keep days: {config.keep_days}, dry run: {config.dry_run}"
    )

    yield

    logger.info("Build Retention API shutting down...")


def create_app(
    config: PolicyConfig | None = None,
    repository: RepositoryService | None = None,
    *,
    title: str = "Build Retention API",
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Policy configuration (loaded from file/environment if None)
        repository: Repository service (filesystem repository if None)
        title: Application title for OpenAPI docs

    Returns:
        Configured FastAPI application instance
    """
    config = config or load_config()
    if repository is None:
        repository = FilesystemRepository(storage_root(), event_bus=StorageEventBus())

    triggers = RetentionTriggers(config, repository)
    if repository.event_bus is not None:
        triggers.register(repository.event_bus)

    app = FastAPI(
        title=title,
        description="Retention and archival of builds in artifact repositories",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.triggers = triggers

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(cleanup.router, prefix="/api/plugins/execute", tags=["Cleanup"])
    app.include_router(events.router, prefix="/api/v1/events", tags=["Events"])

    @app.exception_handler(APIException)
    async def api_exception_handler(request, exc: APIException) -> JSONResponse:
        """Handle API exceptions with proper error responses."""
        return JSONResponse(status_code=exc.status_code, content=exc.body())

    @app.exception_handler(RetentionError)
    async def retention_exception_handler(request, exc: RetentionError) -> JSONResponse:
        """Handle engine errors that escaped per-candidate reporting."""
        logger.error(f"Retention error: {exc}")
        error_type = "configuration_error" if isinstance(exc, ConfigurationError) else "retention_error"
        return JSONResponse(status_code=500, content=error_body(error_type, exc.message, exc.details or None))

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(f"Unhandled exception: {exc}")
        detail = str(exc) if logger.isEnabledFor(logging.DEBUG) else None
        return JSONResponse(
            status_code=500,
            content=error_body("internal_error", "An unexpected error occurred", detail),
        )

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, object]:
        """Root endpoint with API information."""
        return {
            "name": "Build Retention API",
            "version": __version__,
            "status": "operational",
            "docs": "/docs",
            "health": "/health",
            "cleanup": "/api/plugins/execute/cleanup",
        }

    return app
