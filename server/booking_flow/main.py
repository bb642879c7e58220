"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from . import models  # noqa: F401  registers the tables on Base.metadata
from .core.config import Settings, settings
from .core.database import async_session_factory, close_db, engine, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    request_validation_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_structured_logging,
    setup_tracing,
)
from .routers import admin, auth, bookings, flights, flow, health, metrics
from .schemas.health import HealthStatus, ReadinessResponse
from .services.admin_service import AdminService
from .services.api_client import BackendClient, create_http_client
from .services.session_registry import FlowSessionRegistry
from .workers import PendingBookingsWorker, WorkerManager

# Configure structured logging
setup_structured_logging()

# Configure traditional logging for compatibility
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def build_worker_manager(app_settings: Settings, http_client: httpx.AsyncClient) -> WorkerManager:
    """Register the background workers enabled by the settings."""
    manager = WorkerManager()
    if app_settings.admin_api_token:
        manager.register(
            "pending_bookings",
            PendingBookingsWorker(
                AdminService(BackendClient(http_client)),
                token=app_settings.admin_api_token,
                interval_seconds=app_settings.pending_poll_interval_seconds,
            ),
        )
    else:
        logger.info("No admin API token configured; pending bookings poller disabled")
    return manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events for the FastAPI application.
    """
    app_settings: Settings = app.state.settings
    logger.info("Starting FastAPI application")
    logger.info(f"Environment: {app_settings.environment}")

    setup_tracing(SERVICE_NAME)
    instrument_sqlalchemy(app.state.engine)

    await init_db(app.state.engine)
    logger.info("Database initialized successfully")

    owns_http_client = app.state.http_client is None
    if owns_http_client:
        app.state.http_client = create_http_client(app_settings)
    if app.state.flow_registry is None:
        app.state.flow_registry = FlowSessionRegistry(
            app.state.session_factory, app.state.http_client, app_settings
        )

    worker_manager = build_worker_manager(app_settings, app.state.http_client)
    if "pending_bookings" in worker_manager.workers:
        app.state.pending_bookings_worker = worker_manager.get_worker("pending_bookings")
    await worker_manager.start_all()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down FastAPI application")

    await worker_manager.stop_all()
    if owns_http_client:
        await app.state.http_client.aclose()
    await close_db(app.state.engine)

    logger.info("Application shutdown complete")


def create_app(
    app_settings: Settings = settings,
    db_engine: Optional[AsyncEngine] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to run with
        db_engine: Engine for draft storage; defaults to the configured one
        session_factory: Session factory matching db_engine
        http_client: Client for backend calls; when given, the session
            registry is ready before startup

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Booking Flow API",
        description="Backend-for-frontend driving the flight booking flow: flight, seats, travellers, extras, payment and confirmation",
        version=SERVICE_VERSION,
        debug=app_settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
    )

    app.state.settings = app_settings
    app.state.engine = db_engine or engine
    app.state.session_factory = session_factory or async_session_factory
    app.state.http_client = http_client
    app.state.flow_registry = (
        FlowSessionRegistry(app.state.session_factory, http_client, app_settings)
        if http_client is not None else None
    )
    app.state.pending_bookings_worker = None

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "traceparent", "tracestate"],
    )

    setup_middleware(app, enable_logging=True)

    instrument_fastapi(app)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        description="Check if the service is healthy and responsive",
        response_model=dict,
    )
    async def health_check():
        """Liveness only; dependencies are checked by /ready."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
        }

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness Check",
        description="Check if the service is ready to accept requests",
        response_model=ReadinessResponse,
    )
    async def readiness_check() -> JSONResponse:
        """
        Readiness check endpoint that verifies the draft storage and the
        session registry.
        """
        checks = {}
        try:
            async with app.state.session_factory() as db:
                await db.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except SQLAlchemyError as e:
            logger.warning("Readiness database check failed", extra={"error": str(e)})
            checks["database"] = type(e).__name__

        checks["session_registry"] = "ok" if app.state.flow_registry is not None else "not started"

        ready = all(value == "ok" for value in checks.values())
        response_data = ReadinessResponse(
            status=HealthStatus.READY if ready else HealthStatus.NOT_READY,
            service=SERVICE_NAME,
            checks=checks,
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response_data.model_dump(mode="json"),
        )

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        description="Get detailed information about the service",
        response_model=dict,
    )
    async def service_info():
        """
        Service information endpoint.

        Returns:
            dict: Detailed service information
        """
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Backend-for-frontend for the flight booking flow",
            "environment": app_settings.environment,
            "backend": app_settings.backend_base_url,
            "features": {
                "draft_persistence": True,
                "pending_bookings_poller": bool(app_settings.admin_api_token),
                "tracing": bool(app_settings.otlp_endpoint),
                "problem_details": True,
            },
            "endpoints": {
                "health": "/health",
                "readiness": "/ready",
                "info": "/info",
                "metrics": "/metrics",
                "docs": "/docs" if app_settings.debug else None,
            },
        }

    # Register API routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(flights.router)
    app.include_router(flow.router)
    app.include_router(bookings.router)
    app.include_router(admin.router)
    app.include_router(metrics.router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "booking_flow.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
