"""
FastAPI application entry point for the Entity Resource API.

This module provides the application factory with:
- Entity resources built from the resource registry
- Health, readiness and Prometheus metrics endpoints
- Request logging, correlation IDs and HTTP metrics
- Exception handlers mapping resource and store errors to responses
- Database connection pool lifecycle (PostgreSQL backend)
"""

import structlog
import uvicorn
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Any, List, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import CONTENT_TYPE_LATEST

from resource_api.src.config import get_settings, Settings
from resource_api.src.dependencies import init_db_pool, close_db_pool
from resource_api.src.errors import BadRequestAlertError, StoreError
from resource_api.src.middleware.request_logging import RequestLoggingMiddleware
from resource_api.src.repositories.base import EntityStore
from resource_api.src.repositories.postgres_store import PostgresEntityStore
from resource_api.src.resources import ResourceDefinition, build_resources
from resource_api.src.routers.entity_resource import EntityResource
from resource_api.src.utils.headers import create_failure_alert
from shared.logging import configure_logging
from shared.metrics import ResourceMetrics, setup_metrics, get_metrics_handler

logger = structlog.get_logger(__name__)


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - Database connection pool initialization (PostgreSQL backend)
    - Entity table bootstrap
    - Graceful shutdown and resource cleanup
    """
    settings: Settings = app.state.settings
    resources: List[EntityResource] = app.state.resources

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        store_backend=settings.store_backend,
        resources=[resource.path for resource in resources]
    )

    try:
        if settings.uses_postgres:
            await init_db_pool(settings)

            for resource in resources:
                if isinstance(resource.store, PostgresEntityStore):
                    await resource.store.ensure_table()

        logger.info("application_started", app_name=settings.app_name)

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        logger.info("application_shutting_down")
        if settings.uses_postgres:
            await close_db_pool()
        logger.info("application_shutdown_complete")


# ============================================================================
# Exception Handlers
# ============================================================================

def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Map resource, store and framework errors to HTTP responses."""

    @app.exception_handler(BadRequestAlertError)
    async def bad_request_alert_handler(request: Request, exc: BadRequestAlertError):
        logger.warning(
            "entity_request_rejected",
            path=request.url.path,
            entity=exc.entity_name,
            error_key=exc.error_key
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response().model_dump(by_alias=True),
            headers=create_failure_alert(settings.client_app_name, exc.entity_name, exc.error_key)
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(
            "entity_store_error",
            path=request.url.path,
            status_code=exc.status_code,
            error=str(exc)
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": str(exc) or "Entity store failure"}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning(
            "validation_error",
            path=request.url.path,
            errors=exc.errors()
        )
        return JSONResponse(
            status_code=422,
            content={"detail": jsonable_encoder(exc.errors())}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        logger.warning(
            "http_exception",
            path=request.url.path,
            status_code=exc.status_code,
            detail=exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            "unexpected_exception",
            path=request.url.path,
            error=str(exc),
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )


# ============================================================================
# Operational Endpoints
# ============================================================================

def register_operational_endpoints(app: FastAPI, settings: Settings, metrics: Optional[ResourceMetrics]) -> None:
    """Register health, readiness and metrics endpoints."""

    @app.get("/health", tags=["Health"])
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns basic health status without checking dependencies.
        """
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check() -> JSONResponse:
        """
        Readiness check endpoint.

        Pings every entity store; 503 when any store is unavailable.
        """
        checks = {}
        for resource in app.state.resources:
            checks[resource.path] = "healthy" if await resource.store.ping() else "unhealthy"

        all_healthy = all(check == "healthy" for check in checks.values())

        return JSONResponse(
            status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if all_healthy else "not_ready",
                "service": settings.app_name,
                "version": settings.app_version,
                "checks": checks
            }
        )

    if metrics is not None:
        metrics_handler = get_metrics_handler(metrics)

        @app.get(settings.metrics_endpoint, tags=["Monitoring"], include_in_schema=False)
        async def metrics_endpoint() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=metrics_handler(), media_type=CONTENT_TYPE_LATEST)


# ============================================================================
# Application Factory
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    definitions: Optional[List[ResourceDefinition]] = None,
    stores: Optional[Dict[str, EntityStore]] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment settings)
        definitions: Resource definitions (defaults to the registry)
        stores: Pre-built stores keyed by resource path, e.g. for tests

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    metrics = setup_metrics() if settings.metrics_enabled else None

    resources = build_resources(settings, definitions=definitions, stores=stores, metrics=metrics)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="CRUD resources for identifiable entities.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.resources = resources

    if settings.cors_enabled:
        logger.info("configuring_cors", origins=settings.cors_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=[
                "Location",
                "Link",
                "X-Total-Count",
                f"X-{settings.client_app_name}-alert",
                f"X-{settings.client_app_name}-error",
                f"X-{settings.client_app_name}-params",
            ],
        )

    app.add_middleware(
        RequestLoggingMiddleware,
        metrics=metrics,
        skip_paths=("/health", "/ready", settings.metrics_endpoint),
    )

    register_exception_handlers(app, settings)
    register_operational_endpoints(app, settings, metrics)

    for resource in resources:
        app.include_router(resource.build_router(), prefix=settings.api_prefix)

    return app


def create_default_app() -> FastAPI:
    """Build the application from environment settings with logging configured."""
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name=settings.app_name,
        environment=settings.environment,
    )
    return create_app(settings)


# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    settings = get_settings()

    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "resource_api.src.main:create_default_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
