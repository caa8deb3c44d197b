"""Main application entrypoint for the image relay service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from imgrelay.api.v1 import routes_health
from imgrelay.api.v1.routes_upload import router as upload_router
from imgrelay.core.config import settings
from imgrelay.core.exceptions import IngestionError
from imgrelay.core.logging import setup_logging
from imgrelay.core.middleware import HTTPErrorLoggingMiddleware
from imgrelay.storage.factory import close_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_pipeline()


async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
    """Render pipeline failures as ``{"error": message}``."""
    return JSONResponse(status_code=exc.http_status, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed requests in the same error shape as pipeline failures."""
    logger.debug(f"Request validation failed: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    # Initialize logging first
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(HTTPErrorLoggingMiddleware)
    app.add_exception_handler(IngestionError, ingestion_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(upload_router)

    return app


# Export app instance for ASGI servers
app = create_app()
