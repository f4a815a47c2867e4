"""
Render Routes
=============

FastAPI route converting an HTML document into an image.
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from html_to_image.api.dependencies import get_current_settings
from html_to_image.config.logging import get_logger
from html_to_image.config.settings import Settings
from html_to_image.core.rendering.image_generator import generate_image_from_html
from html_to_image.models.schemas import GenerateImageRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["Rendering"])


async def render_html_to_image(request: GenerateImageRequest, settings: Settings) -> Response:
    """
    Core function to render a request into an image response.

    Args:
        request: Decoded render request
        settings: Application settings

    Returns:
        Response carrying the image bytes

    Raises:
        InvalidFormatError: If the requested format is not supported
        ImageGenerationError: If wkhtmltoimage times out or fails
    """
    image = await generate_image_from_html(request.html, request.config, settings)

    # Declared format, not sniffed from the image bytes
    return Response(content=image, media_type=f"image/{request.config.format}")


@router.post(
    "/html-to-image",
    response_class=Response,
    responses={
        200: {"content": {f"image/{fmt}": {} for fmt in ("png", "jpeg", "svg", "bmp")}},
        400: {"description": "Malformed request or invalid format"},
        408: {"description": "Request did not finish in time"},
        500: {"description": "wkhtmltoimage failed or timed out"},
    },
)
async def html_to_image(
    request: GenerateImageRequest, settings: Settings = Depends(get_current_settings)
) -> Response:
    """
    Convert an HTML document to an image.

    The whole conversion is bounded by the request timeout; when it expires the
    conversion is cancelled, which kills the renderer process.
    """
    try:
        return await asyncio.wait_for(
            render_html_to_image(request, settings), timeout=settings.request_timeout
        )
    except asyncio.TimeoutError:
        logger.error("Render request timed out", timeout=settings.request_timeout)
        raise HTTPException(status_code=408, detail="Request Timeout")
