"""SiteCMS Backend - FastAPI Application Factory."""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sitecms.api import admin_router, health_router
from sitecms.core import async_session_maker, settings, setup_logging
from sitecms.core.logging import get_logger
from sitecms.middleware import SecurityHeadersMiddleware

# Import all models to ensure they're registered with Base for Alembic
from sitecms.models import AdminAccount, BlacklistedToken  # noqa: F401
from sitecms.services.token_blacklist import TokenBlacklistService

logger = get_logger("main")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


async def prune_blacklist_once() -> int:
    """Delete blacklist rows whose tokens have expired. Returns count removed."""
    async with async_session_maker() as db:
        removed = await TokenBlacklistService(db).cleanup_expired()
        await db.commit()
    return removed


async def _token_blacklist_cleanup_loop() -> None:
    """Periodically remove expired entries from the token blacklist."""
    while True:
        await asyncio.sleep(settings.blacklist_cleanup_interval_seconds)
        try:
            removed = await prune_blacklist_once()
            if removed > 0:
                logger.info(f"Cleaned up {removed} expired token blacklist entries")
        except Exception:
            logger.exception("Error cleaning up token blacklist")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    blacklist_task = asyncio.create_task(
        _token_blacklist_cleanup_loop(), name="token-blacklist-cleanup"
    )
    blacklist_task.add_done_callback(task_done_callback)

    yield

    logger.info("Shutting down...")
    blacklist_task.cancel()
    try:
        await blacklist_task
    except asyncio.CancelledError:
        pass


async def not_found_or_http_error(request: Request, exc: StarletteHTTPException):
    """JSON 404 for unknown routes; every other HTTP error keeps FastAPI's shape."""
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return await http_exception_handler(request, exc)


async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Content-management backend for the marketing site",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {process_time:.4f}s"
        )
        return response

    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on every response, 401s included.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Content-Range", "X-Content-Range"],
        max_age=600,
    )

    app.add_exception_handler(StarletteHTTPException, not_found_or_http_error)
    app.add_exception_handler(Exception, unhandled_error)

    app.include_router(health_router)
    app.include_router(admin_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "message": "Hello im responding to client side!",
        }

    return app


# Application instance
app = create_app()
