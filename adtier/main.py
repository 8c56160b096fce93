"""
AdTier - FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adtier.api.v1 import api_router
from adtier.core.config import settings
from adtier.core.database import Database
from adtier.core.exceptions import (
    AuthError,
    ConfigError,
    DataError,
    GraphAPIError,
    PermissionDeniedError,
    RateLimitError,
)
from adtier.core.logging import setup_logging
from adtier.schemas.common import ErrorDetail, ErrorResponse
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator
from adtier.tasks.scheduler import Scheduler

logger = logging.getLogger(__name__)


def _status_for(exc: Exception) -> int:
    if isinstance(exc, ConfigError):
        return 400
    if isinstance(exc, AuthError):
        return 401
    if isinstance(exc, PermissionDeniedError):
        return 403
    if isinstance(exc, RateLimitError):
        return 429
    if isinstance(exc, DataError):
        return 422
    return 502


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto HTTP responses"""

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        status_code = _status_for(exc)
        code = exc.code if isinstance(exc, GraphAPIError) else None
        detail = ErrorDetail(type=type(exc).__name__, code=code)
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=str(exc), detail=detail).model_dump(exclude_none=True),
        )

    for exc_class in (ConfigError, DataError, GraphAPIError):
        app.add_exception_handler(exc_class, handle)


def create_app(
    database: Optional[Database] = None,
    coordinator: Optional[ScheduledSyncCoordinator] = None,
    enable_scheduler: Optional[bool] = None,
) -> FastAPI:
    """Create FastAPI application"""
    owns_db = database is None
    db = database or Database(settings.database_url, echo=settings.DEBUG)
    scheduler_enabled = settings.SCHEDULER_ENABLED if enable_scheduler is None else enable_scheduler

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        setup_logging()
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")

        db.create_all()

        scheduler = None
        if scheduler_enabled:
            scheduler = Scheduler(db)
            scheduler.start()
        app.state.scheduler = scheduler

        yield

        if scheduler is not None:
            scheduler.stop()
        if owns_db:
            db.dispose()
        logger.info(f"Shutting down {settings.APP_NAME}")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Ad performance sync and tier classification",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.state.db = db
    app.state.coordinator = coordinator or ScheduledSyncCoordinator(db)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Create app instance
app = create_app()
