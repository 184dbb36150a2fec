"""
Tubely API - FastAPI Application Entry Point.

Initializes the FastAPI application with CORS and request-size middleware,
registers the v1 routers, the ``/assets`` static mount for disk thumbnails
and the exception handlers that render every error as
``{"error": "<message>"}``. Startup/shutdown handlers manage the MongoDB
connection, the optional Redis connection and the thumbnail store.

Architecture Decisions:
- Request bodies above ``max_upload_size_mb`` are rejected by
  BodySizeLimitMiddleware before any route runs
- The thumbnail store is created at startup and kept on ``app.state``
- All API endpoints are versioned under the /api/v1 prefix
"""

import logging

from datetime import UTC, datetime

import uvicorn

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from tubely import __version__
from tubely.api.v1 import api_router
from tubely.config import get_settings
from tubely.core.database import close_db, init_db
from tubely.core.errors import TubelyError
from tubely.core.ingress import BodySizeLimitMiddleware
from tubely.core.redis_client import close_redis, init_redis
from tubely.core.storage import reset_storage_client
from tubely.core.thumbnail_store import build_thumbnail_store
from tubely.utils.logger import setup_logging


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Loading
# =============================================================================

settings = get_settings()


# =============================================================================
# FastAPI Application Initialization
# =============================================================================

app = FastAPI(
    title="Tubely API",
    version=__version__,
    description="Video ingestion service: fast-start processing and S3 publishing",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(BodySizeLimitMiddleware, max_body_size=settings.max_upload_size_bytes)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(TubelyError)
async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    """Render service errors; 5xx details go to the log, not the client."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "Request failed",
            exc_info=exc,
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
    else:
        logger.info(
            "Request rejected",
            extra={
                "path": request.url.path,
                "status_code": exc.status_code,
                "reason": exc.client_message,
            },
        )
    return JSONResponse({"error": exc.client_message}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; keeps unexpected failures inside the error envelope."""
    logger.error(
        f"Internal server error on {request.method} {request.url.path}: {exc!s}",
        exc_info=exc,
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    return JSONResponse(
        {"error": "Internal server error"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        {"error": message},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse({"error": message}, status_code=status.HTTP_400_BAD_REQUEST)


# =============================================================================
# Startup / Shutdown
# =============================================================================


@app.on_event("startup")
async def startup_event() -> None:
    """
    Configure logging, connect to MongoDB (and Redis when the thumbnail
    backend needs it) and create the thumbnail store.

    A MongoDB failure is logged and startup continues so ``/health`` keeps
    answering; record-store calls then fail with 500 until a restart.
    """
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    try:
        await init_db(settings)
    except RuntimeError:
        logger.exception("Failed to initialize database connection")

    redis_client = None
    if settings.thumbnail_store_backend == "redis":
        redis_client = await init_redis(settings)

    app.state.thumbnail_store = build_thumbnail_store(settings, redis_client)

    logger.info(
        "Tubely API started",
        extra={
            "host": settings.host,
            "port": settings.port,
            "thumbnail_store": settings.thumbnail_store_backend,
        },
    )


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await close_db()
    await close_redis()
    reset_storage_client()
    logger.info("Tubely API shutdown complete")


# =============================================================================
# Service Endpoints
# =============================================================================


@app.get("/", tags=["root"])
async def root() -> dict:
    """API information and navigation."""
    return {
        "name": "Tubely API",
        "version": __version__,
        "description": "Video ingestion service",
        "docs": "/docs",
    }


@app.get("/health", tags=["health"])
async def health_check() -> dict:
    """
    Liveness probe for container orchestration.

    Returns immediately without checking MongoDB, Redis or S3.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "tubely",
    }


# =============================================================================
# Routers and Static Files
# =============================================================================

app.include_router(api_router, prefix="/api/v1")

# Directory is created by DiskThumbnailStore at startup
app.mount("/assets", StaticFiles(directory=settings.assets_root, check_dir=False), name="assets")


if __name__ == "__main__":
    uvicorn.run(
        "tubely.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level,
    )
