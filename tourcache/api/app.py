"""
FastAPI Application Factory

Wires the cache manager into an ASGI app exposing the cache monitoring
routes. Run with:

    uvicorn --factory tourcache.api.app:create_app

or ``python -m tourcache.api.app``.
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tourcache.api.cache_routes import router as cache_router
from tourcache.core.config.settings import get_settings
from tourcache.core.exceptions import TourCacheError, ValidationError
from tourcache.core.logging.logger import (
    clear_request_id,
    get_logger,
    set_request_id,
    setup_logging,
)
from tourcache.infrastructure.cache.cache_manager import close_cache, init_cache

logger = get_logger(__name__)

HEADER_REQUEST_ID = "X-Request-ID"


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info("Starting cache service", environment=settings.app.ENVIRONMENT)

    try:
        app.state.cache_manager = await init_cache()
        logger.info("Cache initialized", backend_status=app.state.cache_manager.backend_status.value)

        yield

    finally:
        logger.info("Shutting down cache service")
        await close_cache()
        app.state.cache_manager = None


# ============================================================================
# Application Factory
# ============================================================================


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(title=settings.app.APP_NAME, lifespan=lifespan)
    app.include_router(cache_router)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Inject a request ID into all requests for log correlation."""
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)

        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(TourCacheError)
    async def cache_exception_handler(request: Request, exc: TourCacheError):
        logger.error(f"Cache exception: {exc.message}", error_type=type(exc).__name__)
        return JSONResponse(status_code=500, content=exc.to_dict())

    return app


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "tourcache.api.app:create_app",
        factory=True,
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
