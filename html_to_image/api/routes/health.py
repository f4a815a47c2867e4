"""
Health Routes
=============

FastAPI routes for health check endpoints.
"""

import shutil

from fastapi import APIRouter, Depends, Response

from html_to_image.api.dependencies import get_current_settings
from html_to_image.config.settings import Settings
from html_to_image.models.schemas import HealthStatus

router = APIRouter(tags=["Health"])


def check_renderer_available(settings: Settings) -> bool:
    """Whether the configured wkhtmltoimage executable can be found."""
    return shutil.which(settings.wkhtmltoimage_path) is not None


@router.get("/health", response_model=HealthStatus)
async def health_check(
    response: Response, settings: Settings = Depends(get_current_settings)
) -> HealthStatus:
    """Report whether the service is able to convert documents."""
    available = check_renderer_available(settings)
    if not available:
        response.status_code = 503

    return HealthStatus(
        status="healthy" if available else "unhealthy",
        version=settings.app_version,
        renderer_available=available,
        renderer_path=settings.wkhtmltoimage_path,
    )
