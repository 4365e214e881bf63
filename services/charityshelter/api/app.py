"""
FastAPI application factory for the Charity Shelter API server.

Uses lifespan handler for startup/shutdown with async resource management.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from charityshelter.config import settings
from charityshelter.kv import get_role_store
from charityshelter.logging_config import configure_logging, get_logger
from charityshelter.redis.client import close_redis, init_redis
from charityshelter.services.role_service import initialize_roles

from .health import router as health_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup and shutdown."""
    # Startup
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)
    logger.info("Starting Charity Shelter API server", version="0.1.0")

    await init_redis()
    logger.info("Redis initialized")

    if settings.rbac.seed_system_roles:
        await initialize_roles(get_role_store())

    yield

    # Shutdown
    logger.info("Shutting down Charity Shelter API server")
    await close_redis()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Charity Shelter API",
        description="Charity Shelter - charity organization management platform",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # CORS middleware
    if settings.cors.allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.allow_origins,
            allow_credentials=settings.cors.allow_credentials,
            allow_methods=settings.cors.allow_methods,
            allow_headers=settings.cors.allow_headers,
        )

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Ensure every request has a request ID for logging correlation."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        return response

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        logger.error("Unhandled exception", exc_info=exc, path=str(request.url.path))
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # Health endpoints (no prefix)
    app.include_router(health_router)

    # Role CRUD
    from charityshelter.api.routers.roles import router as roles_router

    app.include_router(roles_router)

    # User role assignments
    from charityshelter.api.routers.role_assignments import router as role_assignments_router

    app.include_router(role_assignments_router)

    # Permission introspection
    from charityshelter.api.routers.permissions import router as permissions_router

    app.include_router(permissions_router)

    return app


# Application instance
app = create_application()
