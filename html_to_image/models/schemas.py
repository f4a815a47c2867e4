"""
Pydantic Models and Schemas
===========================

Request and response models for the HTML to image API.

Request fields follow the JSON decoding rules of the public API: every field is
optional and falls back to its zero value, numbers must be JSON integers and
flags must be JSON booleans.
"""

from typing import Any, List, Literal
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.types import StrictStr, StrictInt, StrictBool


VALID_FORMATS = frozenset({"png", "jpg", "jpeg", "svg", "bmp"})


class RequestModel(BaseModel):
    """Base for request models where JSON null leaves a field at its zero value."""

    @model_validator(mode="before")
    @classmethod
    def null_as_zero_value(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Cookie(RequestModel):
    """Cookie forwarded to the renderer."""
    key: StrictStr = Field("", description="Cookie name")
    value: StrictStr = Field("", description="Cookie value, escaped before use")


class Crop(RequestModel):
    """Crop rectangle. Zero means the coordinate is not passed to the renderer."""
    x: StrictInt = Field(0, description="Crop x coordinate")
    y: StrictInt = Field(0, description="Crop y coordinate")
    w: StrictInt = Field(0, description="Crop width")
    h: StrictInt = Field(0, description="Crop height")


class ImageConfig(RequestModel):
    """Render configuration mapped onto wkhtmltoimage flags."""
    model_config = ConfigDict(populate_by_name=True)

    format: StrictStr = Field("", description="Output format: png, jpg, jpeg, svg or bmp")
    width: StrictInt = Field(0, description="Screen width")
    height: StrictInt = Field(0, description="Screen height")
    disable_smart_width: StrictBool = Field(
        False, alias="disableSmartWidth", description="Use the exact width given"
    )
    encoding: StrictStr = Field("", description="Default text encoding")
    crop: Crop = Field(default_factory=Crop, description="Crop rectangle")
    quality: StrictInt = Field(0, description="Output image quality")
    transparent: StrictBool = Field(False, description="Render with a transparent background")
    cookies: List[Cookie] = Field(default_factory=list, description="Cookies sent with requests")


class GenerateImageRequest(RequestModel):
    """Request model for HTML to image conversion."""
    html: StrictStr = Field("", description="HTML document to render")
    config: ImageConfig = Field(default_factory=ImageConfig, description="Render configuration")


# Health Check Models
class HealthStatus(BaseModel):
    """Health check status."""
    status: Literal["healthy", "unhealthy"] = Field(..., description="Overall status")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Check timestamp"
    )
    version: str = Field(..., description="Application version")
    renderer_available: bool = Field(..., description="Whether wkhtmltoimage can be found")
    renderer_path: str = Field(..., description="Configured wkhtmltoimage executable")
