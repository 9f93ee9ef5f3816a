"""
FastAPI main application for the Daily Git Brief API.

This module initializes the FastAPI app, configures middleware, error handlers,
and includes all API routers.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import __version__
from api.routers import collect, health, languages, trends
from api.schemas.common import error_body
from gitbrief.config import ConfigurationError, Settings, get_settings
from gitbrief.observability.logging import setup_logging
from gitbrief.observability.metrics import render_metrics
from gitbrief.orchestrator import CollectionOrchestrator, build_orchestrator
from gitbrief.scheduler import CollectionScheduler
from gitbrief.services.progress import ProgressTracker
from gitbrief.storage.interfaces import StorageError, TrendStore

logger = logging.getLogger(__name__)


# Application state
class AppState:
    """Application state container."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.tracker = ProgressTracker()
        self.store: Optional[TrendStore] = None
        self.orchestrator: Optional[CollectionOrchestrator] = None
        self.scheduler: Optional[CollectionScheduler] = None
        self.started_at: Optional[datetime] = None
        # True when the lifespan built the components and must release them
        self.owns_components = False


app_state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.

    Builds the collection pipeline from settings unless components were
    already placed on app_state, and starts the daily schedule.
    """
    app_state.started_at = datetime.utcnow()

    if app_state.orchestrator is None:
        try:
            settings = get_settings()
        except ConfigurationError as e:
            logger.error(f"Invalid configuration: {e}")
            raise

        setup_logging(settings.log_level, json_format=settings.log_format == "json")
        logger.info("Starting Daily Git Brief API...")

        app_state.settings = settings
        app_state.orchestrator = build_orchestrator(settings, tracker=app_state.tracker)
        app_state.store = app_state.orchestrator.store
        app_state.owns_components = True
        logger.info(f"Storage opened at {settings.database_path}")

        if settings.collect_cron:
            app_state.scheduler = CollectionScheduler(app_state.orchestrator, settings.collect_cron)
            await app_state.scheduler.start()

    logger.info("API startup complete")

    yield

    logger.info("Shutting down Daily Git Brief API...")

    if app_state.scheduler:
        await app_state.scheduler.shutdown()
        app_state.scheduler = None

    if app_state.owns_components and app_state.orchestrator:
        try:
            await app_state.orchestrator.close()
            logger.info("Collection pipeline closed")
        except (StorageError, OSError) as e:
            logger.error(f"Error closing collection pipeline: {e}")
        app_state.orchestrator = None
        app_state.store = None
        app_state.owns_components = False

    logger.info("API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Daily Git Brief API",
    description="""
    ## Daily trending repositories, summarized

    Collects the day's trending GitHub repositories, breaks down their
    language composition and summarizes each README with an LLM.

    ### Features

    - **Daily Collection**: On demand or on a daily schedule, one run at a time
    - **Live Progress**: Server-sent events while a run is in progress
    - **Language Trends**: Daily and weekly language share rollups
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


def _cors_origins():
    try:
        return get_settings().cors_origins
    except ConfigurationError:
        return ["*"]


# CORS middleware configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with the response envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = "; ".join(
        f"{'.'.join(str(loc) for loc in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(f"Validation error: {errors}"),
    )


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    """Handle storage failures."""
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(f"Storage error: {exc}"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("An unexpected error occurred"),
    )


# Root endpoint
@app.get("/", tags=["Root"])
async def root() -> Dict[str, Any]:
    """
    API root endpoint providing basic information.

    Returns information about the API including version, status, and available endpoints.
    """
    return {
        "name": "Daily Git Brief API",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "collect": "/api/collect",
            "progress": "/api/collect/progress",
            "status": "/api/collect/status",
            "trends": "/api/trends",
            "languages_daily": "/api/languages/daily",
            "languages_weekly": "/api/languages/weekly",
            "health": "/health",
            "metrics": "/metrics",
        },
    }


@app.get("/metrics", tags=["Monitoring"], include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics in the text exposition format."""
    payload, content_type = render_metrics()
    return Response(content=payload, media_type=content_type)


# Include routers
app.include_router(health.router)
app.include_router(collect.router, prefix="/api")
app.include_router(trends.router, prefix="/api")
app.include_router(languages.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
