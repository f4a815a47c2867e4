"""
FastAPI Application
==================

Main FastAPI application converting HTML documents to images.
Composes compression, CORS, ETag, request logging and rate limiting around the
rendering routes.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from html_to_image.config.settings import get_settings, Settings
from html_to_image.config.logging import get_logger
from html_to_image.api.middleware import add_etag, log_requests
from html_to_image.api.rate_limit import (
    RateLimitMiddleware,
    SlidingWindowRateLimiter,
    create_storage,
)
from html_to_image.api.routes import health, render
from html_to_image.api.routes.health import check_renderer_available
from html_to_image.core.rendering.arguments import InvalidFormatError
from html_to_image.core.rendering.image_generator import ImageGenerationError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info("Starting FastAPI application", renderer=settings.wkhtmltoimage_path)

    if not check_renderer_available(settings):
        logger.warning("wkhtmltoimage not found", renderer=settings.wkhtmltoimage_path)

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")

        limiter: Optional[SlidingWindowRateLimiter] = app.state.rate_limiter
        if limiter is not None:
            try:
                await limiter.close()
                logger.info("Rate limit storage closed")
            except Exception as e:
                logger.error("Error closing rate limit storage", error=str(e))


def format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten request validation errors into a single line."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(messages)


# Exception handlers
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> PlainTextResponse:
    """Reject bodies that cannot be decoded into a render request."""
    message = format_validation_errors(exc)
    logger.info(
        "Request body rejected",
        error=message,
        request_id=getattr(request.state, "request_id", None),
    )
    return PlainTextResponse(message, status_code=400)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    """Plain text rendering of HTTP exceptions."""
    logger.error(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=getattr(request.state, "request_id", None),
    )
    return PlainTextResponse(
        str(exc.detail), status_code=exc.status_code, headers=getattr(exc, "headers", None)
    )


async def invalid_format_exception_handler(
    request: Request, exc: InvalidFormatError
) -> PlainTextResponse:
    """Unsupported output formats are client errors."""
    logger.info(
        "Invalid image format",
        error=str(exc),
        request_id=getattr(request.state, "request_id", None),
    )
    return PlainTextResponse(str(exc), status_code=400)


async def image_generation_exception_handler(
    request: Request, exc: ImageGenerationError
) -> PlainTextResponse:
    """Renderer failures and timeouts become 500 responses."""
    settings: Settings = request.app.state.settings
    error_message = str(exc)

    logger.error(
        "Image generation error",
        error_type=type(exc).__name__,
        error_message=error_message,
        request_id=getattr(request.state, "request_id", None),
    )

    body = error_message if settings.expose_error_details else "Internal Server Error"
    return PlainTextResponse(body, status_code=500)


async def general_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """General exception handler for unexpected errors."""
    logger.error(
        "Unhandled exception",
        exception=str(exc),
        request_id=getattr(request.state, "request_id", None),
        exc_info=True,
    )
    return PlainTextResponse("Internal Server Error", status_code=500)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.

    Args:
        settings: Settings to use instead of the global instance

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Convert HTML documents to images with wkhtmltoimage",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.rate_limiter = None

    # Middleware added last runs first
    if settings.rate_limit_enabled:
        limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max,
            window=settings.rate_limit_window,
            storage=create_storage(settings),
        )
        app.state.rate_limiter = limiter
        app.add_middleware(RateLimitMiddleware, limiter=limiter, settings=settings)

    app.middleware("http")(log_requests)
    app.middleware("http")(add_etag)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidFormatError, invalid_format_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ImageGenerationError, image_generation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(render.router)
    app.include_router(health.router)

    @app.get("/", tags=["General"])
    async def root() -> dict[str, Any]:
        """Root endpoint with basic API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "health_check": "/health",
            "endpoints": {"html_to_image": "POST /v1/html-to-image"},
        }

    return app


app = create_app()


def run_server() -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "html_to_image.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
