"""
Argument Builder
================

Translates an ImageConfig into the wkhtmltoimage command-line arguments.
"""

from typing import List
from urllib.parse import quote_plus

from html_to_image.models.schemas import ImageConfig, VALID_FORMATS


class InvalidFormatError(ValueError):
    """Exception raised when the requested output format is not supported."""

    pass


def is_valid_format(image_format: str) -> bool:
    """Check whether ``image_format`` is one of the supported output formats."""
    return image_format in VALID_FORMATS


def build_arguments(config: ImageConfig) -> List[str]:
    """
    Build wkhtmltoimage arguments for a render configuration.

    Flags are emitted in a fixed order and only for fields holding a non-zero
    value, so an explicit zero cannot be passed to the renderer. Cookie values
    are query-escaped to keep each ``name=value`` pair a single token.

    Args:
        config: Render configuration

    Returns:
        Ordered argument list, without the input/output tokens

    Raises:
        InvalidFormatError: If a non-empty format is not supported
    """
    if config.format and not is_valid_format(config.format):
        raise InvalidFormatError(f"invalid format: {config.format}")

    arguments: List[str] = []

    if config.format:
        arguments.extend(["-f", config.format])

    if config.width != 0:
        arguments.extend(["--width", str(config.width)])

    if config.height != 0:
        arguments.extend(["--height", str(config.height)])

    if config.disable_smart_width:
        arguments.append("--disable-smart-width")

    if config.encoding:
        arguments.extend(["--encoding", config.encoding])

    if config.quality != 0:
        arguments.extend(["--quality", str(config.quality)])

    if config.transparent:
        arguments.append("--transparent")

    crop = config.crop
    if crop.x != 0:
        arguments.extend(["--crop-x", str(crop.x)])

    if crop.y != 0:
        arguments.extend(["--crop-y", str(crop.y)])

    if crop.h != 0:
        arguments.extend(["--crop-h", str(crop.h)])

    if crop.w != 0:
        arguments.extend(["--crop-w", str(crop.w)])

    for cookie in config.cookies:
        arguments.extend(["--cookie", f"{cookie.key}={quote_plus(cookie.value)}"])

    return arguments
